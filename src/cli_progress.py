"""Console progress presentation for batch runs."""

from __future__ import annotations

from typing import Optional

from tqdm import tqdm

from mapping.models import ProgressEvent


class ProgressBar:
    """Render batch progress events as a tqdm bar on stderr."""

    def __init__(self, description: str = "Mapping packages", disable: bool = False):
        self.description = description
        self.disable = disable
        self._bar: Optional[tqdm] = None

    def __call__(self, event: ProgressEvent) -> None:
        if self._bar is None:
            self._bar = tqdm(total=event.total, desc=self.description, unit="pkg",
                             disable=self.disable, leave=True)
        self._bar.set_postfix_str(event.package, refresh=False)
        self._bar.update(event.index - self._bar.n)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def __enter__(self) -> "ProgressBar":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
