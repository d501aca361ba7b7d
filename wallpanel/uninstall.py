"""Factory reset: undo everything install and the extras menu did."""

from dataclasses import dataclass, field
from typing import List

from wallpanel.configs.cmdline import MANAGED_PARAMS, CmdlineConfig
from wallpanel.configs.session import SessionFiles
from wallpanel.configs.snapshot import SnapshotConfig
from wallpanel.errors import SystemManagerError, WriteError
from wallpanel.features import Feature, FeatureToggle
from wallpanel.logging_config import get_logger
from wallpanel.packages import PackageManager
from wallpanel.system_manager import SystemManager
from wallpanel.units import UnitRenderer

logger = get_logger(__name__)

UNIT_PREFIX = "kiosk-"


@dataclass
class UninstallReport:
    removed: List[str] = field(default_factory=list)
    problems: List[str] = field(default_factory=list)

    def problem(self, message: str) -> None:
        logger.warning(message)
        self.problems.append(message)


class Uninstaller:
    """Best-effort removal; a failing step is recorded and the next one runs."""

    def __init__(
        self,
        packages: PackageManager,
        session: SessionFiles,
        snapshot_store: SnapshotConfig,
        features: FeatureToggle,
        renderer: UnitRenderer,
        cmdline: CmdlineConfig,
        system_manager: SystemManager,
    ):
        self.packages = packages
        self.session = session
        self.snapshot_store = snapshot_store
        self.features = features
        self.renderer = renderer
        self.cmdline = cmdline
        self.system_manager = system_manager

    def run(self) -> UninstallReport:
        report = UninstallReport()

        logger.info("Purging packages")
        if not self.packages.purge():
            report.problem("Package purge failed")

        try:
            report.removed.extend(self.session.remove())
        except OSError as e:
            report.problem(f"Could not remove session files: {e}")

        if self.snapshot_store.remove():
            report.removed.append(str(self.snapshot_store.config_file))

        for feature in Feature:
            try:
                self.features.disable(feature)
            except OSError as e:
                report.problem(f"Could not disable {feature.value}: {e}")

        leftovers = sorted(p.name for p in self.renderer.unit_dir.glob(f"{UNIT_PREFIX}*"))
        report.removed.extend(self.renderer.remove(leftovers))

        try:
            self.cmdline.apply(MANAGED_PARAMS, [])
        except WriteError as e:
            report.problem(f"Boot parameters left unchanged: {e}")

        for description, call in (
            ("disable NetworkManager-wait-online", lambda: self.system_manager.disable("NetworkManager-wait-online.service")),
            ("set multi-user.target as default", lambda: self.system_manager.set_default("multi-user.target")),
            ("reload the service manager", self.system_manager.reload),
        ):
            try:
                call()
            except SystemManagerError as e:
                report.problem(f"Could not {description}: {e}")

        logger.info(f"Uninstall complete, {len(report.removed)} items removed")
        return report
