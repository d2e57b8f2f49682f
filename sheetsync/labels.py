"""Repository label registry and label validation."""

from collections.abc import Iterable, Iterator

from sheetsync.models import LabelRecord, ValidationResult


class LabelRegistry:
    """Case-insensitive lookup of the repository's labels, built once per run."""

    def __init__(self, labels: dict[str, LabelRecord] | None = None) -> None:
        self._labels: dict[str, LabelRecord] = dict(labels or {})

    @classmethod
    def build(cls, labels: Iterable[LabelRecord]) -> "LabelRegistry":
        # Names differing only by case collapse to one key; the last one wins
        return cls({label.name.lower(): label for label in labels})

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[LabelRecord]:
        return iter(self._labels.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._labels

    def get(self, name: str) -> LabelRecord | None:
        return self._labels.get(name.strip().lower())

    def validate(self, requested: Iterable[str]) -> ValidationResult:
        """Partition requested labels into known and unknown ones.

        Each label is trimmed before lookup and the trimmed form is returned.
        Both lists keep the order of ``requested``.
        """
        valid: list[str] = []
        invalid: list[str] = []
        for label in requested:
            trimmed = label.strip()
            if trimmed.lower() in self._labels:
                valid.append(trimmed)
            else:
                invalid.append(trimmed)
        return ValidationResult(valid_labels=tuple(valid), invalid_labels=tuple(invalid))

    def available_labels(self) -> list[str]:
        return list(self._labels)
