from .api_key import ApiKey
from .upload import DEFAULT_CONTENT_TYPE, Upload

__all__ = ["ApiKey", "Upload", "DEFAULT_CONTENT_TYPE"]
