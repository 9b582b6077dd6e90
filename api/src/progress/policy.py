"""When a section counts as completed."""

from src.courses.models import Section


DEFAULT_COMPLETION_THRESHOLD = 95.0


class SectionCompletionPolicy:
    """Decides whether a progress flush implicitly completes its section.

    Explicit completion (the student pressing "complete") always completes and
    does not go through this policy. Implicit completion only applies to
    sections with a video: a flush completes them once playback reaches
    ``threshold`` percent or the player reports the end. Text sections only
    complete explicitly.

    The policy never un-completes; callers pass its answer as ``complete`` to
    the store, which ignores False for records that are already complete.
    """

    def __init__(self, threshold: float = DEFAULT_COMPLETION_THRESHOLD):
        self.threshold = threshold

    def should_complete(
        self, section: Section, last_position: float, ended: bool = False
    ) -> bool:
        if not section.has_video:
            return False
        return ended or last_position >= self.threshold
