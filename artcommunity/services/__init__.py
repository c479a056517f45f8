from .feed import FeedQueryBuilder, get_community_feed
from .artworks import publish_artwork, list_user_artworks, toggle_like, delete_artwork
from .collections import (
    get_collection_items, remove_collection_item, add_collection_item, add_collection_items,
    remove_collection_items, delete_collection, parse_id_list,
    get_collection, update_collection, create_collection, list_favorites
)
from .history import HistoryQueryBuilder, list_history
from .statistics import get_statistics
from .prompts import (
    PromptQueryBuilder, list_prompts, create_prompt, update_prompt, delete_prompt, use_prompt,
    get_categories, get_popular_tags
)
from .users import register_user, login_user, logout_user, get_profile, update_profile, change_password
__all__ = [
    "FeedQueryBuilder",
    "get_community_feed",
    "publish_artwork",
    "list_user_artworks",
    "toggle_like",
    "delete_artwork",
    "get_collection_items",
    "remove_collection_item",
    "add_collection_item",
    "add_collection_items",
    "remove_collection_items",
    "delete_collection",
    "parse_id_list",
    "get_collection",
    "update_collection",
    "create_collection",
    "list_favorites",
    "HistoryQueryBuilder",
    "list_history",
    "get_statistics",
    "PromptQueryBuilder",
    "list_prompts",
    "create_prompt",
    "update_prompt",
    "delete_prompt",
    "use_prompt",
    "get_categories",
    "get_popular_tags",
    "register_user",
    "login_user",
    "logout_user",
    "get_profile",
    "update_profile",
    "change_password"
]
