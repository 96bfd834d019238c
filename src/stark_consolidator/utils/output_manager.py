# src/stark_consolidator/utils/output_manager.py
import datetime
import logging
import re
import shutil
from pathlib import Path
from typing import Dict, Optional, Union


class OutputManager:
    """
    Owns the directory layout of one consolidation run:

        <base_dir>/<run slug>/reports
        <base_dir>/<run slug>/charts
        <base_dir>/<run slug>/logs
        <base_dir>/<run slug>/debug
    """

    COMPONENTS = ("reports", "charts", "logs", "debug")

    def __init__(
        self,
        base_dir: Union[str, Path],
        run_name: str = "stark",
        timestamp: Optional[str] = None,
        create_dirs: bool = True,
        overrides: Optional[Dict[str, Union[str, Path]]] = None
    ):
        self.base_dir = Path(base_dir)
        self.run_name = run_name
        self.timestamp = timestamp or datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        self.run_slug = self._create_safe_slug(run_name)

        root = self.base_dir / self.run_slug
        self.structure: Dict[str, Path] = {"root": root}
        for component in self.COMPONENTS:
            self.structure[component] = root / component

        if overrides:
            for key, value in overrides.items():
                if key in self.structure:
                    self.structure[key] = Path(value)

        self.logger = logging.getLogger("output_manager")

        if create_dirs:
            self.create_directories()

    def _create_safe_slug(self, name: str) -> str:
        """Filesystem-safe directory name for a run."""
        slug = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_")
        return slug or "run"

    def create_directories(self) -> None:
        for component, directory in self.structure.items():
            directory.mkdir(parents=True, exist_ok=True)
            self.logger.debug(f"Created directory for {component}: {directory}")

    def get_path(self, component: str, *path_elements) -> Path:
        """Path inside a component directory; None elements are skipped."""
        if component not in self.structure:
            raise ValueError(f"Unknown component: {component}")
        path = self.structure[component]

        valid_elements = [str(element) for element in path_elements if element is not None]
        if valid_elements:
            return path.joinpath(*valid_elements)
        return path

    def get_timestamped_path(self, component: str, base_filename: str, ext: str = "") -> Path:
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        return self.get_path(component, f"{base_filename}_{self.timestamp}{ext}")

    def backup_existing_file(self, component: str, filename: str, max_backups: int = 5) -> Optional[Path]:
        """
        Copy an existing output file aside before it is overwritten.

        Args:
            component: Component directory holding the file
            filename: File name inside that directory
            max_backups: Backups of the same file kept after cleanup

        Returns:
            Path of the backup, or None when there was nothing to back up
        """
        file_path = self.get_path(component, filename)
        if not file_path.exists():
            return None

        backup_path = file_path.parent / f"{file_path.stem}_backup_{self.timestamp}{file_path.suffix}"
        try:
            shutil.copy2(file_path, backup_path)
        except OSError as e:
            self.logger.error(f"Error creating backup of {file_path}: {e}")
            return None

        self.logger.info(f"Created backup of {file_path} to {backup_path}")
        self._cleanup_old_backups(file_path.parent, file_path.stem, file_path.suffix, max_backups)
        return backup_path

    def _cleanup_old_backups(self, directory: Path, base_name: str, extension: str, max_backups: int) -> None:
        # Newest first
        backup_files = sorted(
            directory.glob(f"{base_name}_backup_*{extension}"),
            key=lambda x: x.stat().st_mtime,
            reverse=True
        )
        for old_backup in backup_files[max_backups:]:
            try:
                old_backup.unlink()
                self.logger.debug(f"Removed old backup: {old_backup}")
            except OSError as e:
                self.logger.warning(f"Error removing old backup {old_backup}: {e}")

    def safe_write_file(self, path: Union[Path, str], content: str, encoding: str = "utf-8") -> bool:
        """Write text, creating parent directories; False on failure."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding=encoding)
        except OSError as e:
            self.logger.error(f"Error writing file {path}: {e}")
            return False
        self.logger.debug(f"Wrote {path}")
        return True
