from teamhub.config.settings import settings

__all__ = ["settings"]
