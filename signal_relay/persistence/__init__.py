from .online_json import OnlineFile

__all__ = ["OnlineFile"]
