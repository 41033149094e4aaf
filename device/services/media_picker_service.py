"""
Media Picker Service - Preselected Media.

Implements MediaPickerInterface for non-interactive callers (CLI, tests):
the mode and file are chosen up front. Missing values behave like the
user dismissing the dialog.
"""

from pathlib import Path

from device.interfaces.media_picker import MediaMode, MediaPickerInterface


class PresetMediaPicker(MediaPickerInterface):
    def __init__(self, mode: MediaMode | str | None = None, path: str | Path | None = None):
        self._mode = MediaMode(mode) if mode else None
        self._path = Path(path) if path else None

    def choose_mode(self) -> MediaMode | None:
        return self._mode

    def pick(self, mode: MediaMode) -> Path | None:
        return self._path
