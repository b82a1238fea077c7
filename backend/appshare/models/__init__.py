"""Models package: re-export all ORM classes so metadata sees every table."""
from appshare.models.snapshot import AppSnapshot  # noqa: F401
from appshare.models.gallery import GalleryEntry, UpvoteRecord  # noqa: F401
from appshare.models.blocked_ip import BlockedIP  # noqa: F401
