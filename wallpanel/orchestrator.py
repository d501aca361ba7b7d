"""The installation sequence.

Installation is a fixed list of steps run in order against an
``InstallContext``. Each step is idempotent, so re-running the whole
sequence with the same snapshot converges on the same machine state. Only a
package failure is fatal; every later step degrades to a warning.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from wallpanel.configs.cmdline import MANAGED_PARAMS, CmdlineConfig, desired_kernel_params
from wallpanel.configs.labwc import CACHE_DIR
from wallpanel.configs.session import SessionFiles
from wallpanel.configs.snapshot import Snapshot, SnapshotConfig
from wallpanel.errors import InstallationError, SystemManagerError, ToggleError, WriteError
from wallpanel.features import Feature, FeatureToggle
from wallpanel.host import HostContext
from wallpanel.logging_config import get_logger
from wallpanel.packages import PackageManager, has_candidate, select_packages
from wallpanel.system_manager import SystemManager
from wallpanel.utils.command import run_command

logger = get_logger(__name__)


class ProgressReporter(Protocol):
    """Where step progress goes: a gauge widget or plain banners."""

    def start(self) -> None:
        ...

    def update(self, percent: int, text: str) -> None:
        ...

    def finish(self) -> None:
        ...


class BannerProgress:
    """Progress for verbose mode, where command output shares the terminal."""

    def __init__(self, write: Callable[[str], None] = print):
        self.write = write

    def start(self) -> None:
        self.write(">>> STARTING INSTALLATION (Verbose Mode)")

    def update(self, percent: int, text: str) -> None:
        rule = "=" * 54
        self.write(f"\n{rule}\n>>> {text}\n{rule}")

    def finish(self) -> None:
        self.write(">>> DONE.")


@dataclass
class InstallContext:
    """Everything the steps act on, resolved once by the caller."""

    snapshot: Snapshot
    host: HostContext
    snapshot_store: SnapshotConfig
    cmdline: CmdlineConfig
    features: FeatureToggle
    system_manager: SystemManager
    packages: PackageManager
    session: SessionFiles
    base_packages: List[str]
    raspberry_pi: bool = False
    candidate: Callable[[str], bool] = has_candidate
    cache_dir: Path = Path(CACHE_DIR)
    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


class Step(Protocol):
    step_id: str
    percent: int
    message: str

    def run(self, ctx: InstallContext) -> None:
        ...


class PersistStep:
    """Save the snapshot before anything on the machine changes."""

    step_id = "persist"
    percent = 0
    message = "Saving configuration..."

    def run(self, ctx: InstallContext) -> None:
        errors = ctx.snapshot_store.validate(ctx.snapshot)
        if errors:
            raise InstallationError("Invalid configuration", output="\n".join(errors))
        ctx.snapshot_store.save(ctx.snapshot)


class PackagesStep:
    step_id = "packages"
    percent = 5
    message = "Updating package lists and installing packages..."

    def run(self, ctx: InstallContext) -> None:
        ctx.packages.update()
        selected = select_packages(ctx.snapshot, ctx.base_packages, ctx.raspberry_pi, ctx.candidate)
        ctx.packages.install(selected)


class KernelStep:
    step_id = "kernel"
    percent = 50
    message = "Configuring kernel..."

    def run(self, ctx: InstallContext) -> None:
        desired = desired_kernel_params(ctx.snapshot)
        try:
            ctx.cmdline.apply(MANAGED_PARAMS, desired)
        except WriteError as e:
            ctx.warn(f"Boot parameters left unchanged: {e}")


class RebootScheduleStep:
    step_id = "reboot_schedule"
    percent = 60
    message = "Configuring scheduled reboot..."

    def run(self, ctx: InstallContext) -> None:
        schedule = ctx.snapshot.get("reboot_schedule", "Disabled")
        reboot_time = ctx.snapshot.get("reboot_time")
        try:
            if schedule != "Disabled" and reboot_time:
                ctx.features.enable(Feature.REBOOT_SCHEDULE, {"frequency": schedule, "time": reboot_time})
            else:
                ctx.features.disable(Feature.REBOOT_SCHEDULE)
        except ToggleError as e:
            ctx.warn(f"Scheduled reboot not configured: {e}")


class SystemStep:
    step_id = "system"
    percent = 70
    message = "Configuring system..."

    def run(self, ctx: InstallContext) -> None:
        timezone = ctx.snapshot.get("timezone")
        if timezone:
            result = run_command(["timedatectl", "set-timezone", timezone], check=False)
            if result.returncode != 0:
                ctx.warn(f"Could not set timezone {timezone}: {(result.stderr or '').strip()}")

        if ctx.snapshot.is_yes("enable_ssh"):
            actions = [ctx.system_manager.enable, ctx.system_manager.start]
        else:
            actions = [ctx.system_manager.disable, ctx.system_manager.stop]
        for action in actions:
            try:
                action("ssh")
            except SystemManagerError as e:
                logger.info(f"ssh: {e}")

        for description, call in (
            ("set graphical.target as default", lambda: ctx.system_manager.set_default("graphical.target")),
            ("reload the service manager", ctx.system_manager.reload),
        ):
            try:
                call()
            except SystemManagerError as e:
                ctx.warn(f"Could not {description}: {e}")


class SessionFilesStep:
    step_id = "session_files"
    percent = 85
    message = "Configuring Labwc & Chromium..."

    def run(self, ctx: InstallContext) -> None:
        try:
            ctx.session.write(ctx.snapshot)
        except (OSError, ValueError) as e:
            ctx.warn(f"Session configuration incomplete: {e}")
            return

        ctx.cache_dir.mkdir(parents=True, exist_ok=True)
        result = run_command(["mount", str(ctx.cache_dir)], check=False)
        if result.returncode != 0:
            logger.debug(f"{ctx.cache_dir} not mounted now, fstab takes effect on reboot")


INSTALL_STEPS: Sequence[Step] = (
    PackagesStep(),
    KernelStep(),
    RebootScheduleStep(),
    SystemStep(),
    SessionFilesStep(),
)


@dataclass(frozen=True)
class InstallResult:
    ran_steps: List[str]
    warnings: List[str]


def run_steps(
    ctx: InstallContext,
    steps: Sequence[Step],
    progress: Optional[ProgressReporter] = None,
) -> InstallResult:
    """Run ``steps`` in order, stopping at the first raised error.

    Raises:
        InstallationError: From a fatal step; later steps do not run.
    """
    ran: List[str] = []
    if progress:
        progress.start()
    try:
        for step in steps:
            logger.info(f"Running step {step.step_id}")
            if progress:
                progress.update(step.percent, step.message)
            step.run(ctx)
            ran.append(step.step_id)
        if progress:
            progress.update(100, "Installation complete!")
    finally:
        if progress:
            progress.finish()
    return InstallResult(ran_steps=ran, warnings=list(ctx.warnings))


def persist(ctx: InstallContext) -> None:
    """Save the snapshot only; the caller may stop here."""
    run_steps(ctx, [PersistStep()])


def install(ctx: InstallContext, progress: Optional[ProgressReporter] = None) -> InstallResult:
    """Apply the snapshot to the machine."""
    return run_steps(ctx, INSTALL_STEPS, progress)
