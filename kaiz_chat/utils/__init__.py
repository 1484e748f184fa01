from kaiz_chat.utils.auth import bearer_headers

__all__ = ["bearer_headers"]
