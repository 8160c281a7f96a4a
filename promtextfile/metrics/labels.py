"""Label set composition"""
from typing import Iterable, List, Optional, Tuple
from .models import Label
from .validation import validate_label_name


class LabelSet:
    """Ordered label assignments collected from repeated ``-l key=value`` flags"""

    def __init__(self):
        self._labels: List[Label] = []

    def add(self, assignment: str) -> "LabelSet":
        """Append ``key=value``, splitting on the first '='

        The key is validated before anything is appended, values may
        contain '='.
        """
        key, _, value = assignment.partition("=")
        validate_label_name(key)
        self._labels.append(Label(key, value))
        return self

    def finalize(self, user: str, description: Optional[str] = None) -> Tuple[Label, ...]:
        """Explicit labels in flag order, then user, then description if given"""
        labels = list(self._labels)
        labels.append(Label("user", user))
        if description:
            labels.append(Label("description", description))
        return tuple(labels)

    def __len__(self) -> int:
        return len(self._labels)

    @classmethod
    def from_assignments(cls, assignments: Iterable[str]) -> "LabelSet":
        label_set = cls()
        for assignment in assignments:
            label_set.add(assignment)
        return label_set


def render_labels(labels: Iterable[Label]) -> str:
    """Join labels as key="value" pairs separated by commas"""
    return ",".join(label.to_prometheus() for label in labels)
