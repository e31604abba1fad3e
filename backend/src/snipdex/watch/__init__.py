"""Change notifications for snippet sources."""

from snipdex.watch.feed import (
    ChangeEvent,
    ChangeFeed,
    WatchTarget,
    create_change_feed,
    watch_targets,
)
