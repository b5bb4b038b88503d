"""Library configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings, overridable through ``INSTAFILTER_`` environment variables."""

    # Decoding
    MAX_IMAGE_PIXELS: int = 64 * 1024 * 1024  # Larger images count as corrupt
    DEFAULT_ENCODE_FORMAT: str = "png"

    # Rendering
    CROP_TO_SOURCE: bool = True  # Bound infinite-extent filters by the source extent
    WORKING_CACHE_SIZE: int = 4  # Source buffers kept in float working form

    model_config = {"env_prefix": "INSTAFILTER_"}


settings = Settings()
