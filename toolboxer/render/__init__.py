from .export import render_json
from .pipeline import UNKNOWN_BUCKET, FilterOptions, group_by_owner, select
from .text import render

__all__ = ["FilterOptions", "UNKNOWN_BUCKET", "group_by_owner", "select", "render", "render_json"]
