"""Command-line entry point: the interactive wallpanel setup tool."""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from wallpanel import __version__
from wallpanel.config_loader import ConfigLoader, config_loader
from wallpanel.configs.cmdline import CmdlineConfig
from wallpanel.configs.session import SessionFiles
from wallpanel.configs.snapshot import SnapshotConfig
from wallpanel.errors import InstallationError
from wallpanel.features import FeatureToggle
from wallpanel.hardware import is_raspberry_pi, list_drm_modes, list_touch_candidates
from wallpanel.host import HostContext
from wallpanel.logging_config import DEFAULT_LOG_FILE, get_logger, setup_logging
from wallpanel.orchestrator import BannerProgress, InstallContext, install, persist
from wallpanel.packages import PackageManager
from wallpanel.system_manager import SystemctlManager, SystemManager
from wallpanel.ui.extras import ExtrasMenu
from wallpanel.ui.prompts import DialogPrompter, GaugeProgress, Prompter
from wallpanel.ui.wizard import Wizard
from wallpanel.uninstall import Uninstaller
from wallpanel.units import UnitRenderer

# Logger will be initialized in main() after logging setup
logger = None

EXIT_OK = 0
EXIT_FAILURE = 1


class SetupApp:
    """Wires the components for one run and drives the main menu."""

    def __init__(
        self,
        loader: ConfigLoader,
        host: HostContext,
        prompter: Prompter,
        system_manager: SystemManager,
        verbose: bool = False,
    ):
        self.loader = loader
        self.host = host
        self.prompter = prompter
        self.system_manager = system_manager
        self.verbose = verbose

        self.snapshot_store = SnapshotConfig(loader.get_snapshot_file())
        self.renderer = UnitRenderer(loader.get_unit_dir())
        self.features = FeatureToggle(system_manager, self.renderer, host, loader.get_sudoers_file())
        self.packages = PackageManager(loader.get_error_log(), verbose=verbose)
        self.session = SessionFiles(host)

    def cmdline(self) -> CmdlineConfig:
        return CmdlineConfig(self.loader.resolve_cmdline_path(), self.loader.get_cmdline_min_length())

    def run(self) -> int:
        while True:
            choice = self.prompter.menu(
                "Select an option:",
                [
                    ("Install", "Configure and Install Wallpanel"),
                    ("Extras", "Additional Tools (Sudoless, etc)"),
                    ("Uninstall", "Remove Wallpanel and Revert to Stock"),
                    ("Exit", "Quit"),
                ],
            )
            if choice is None or choice == "Exit":
                return EXIT_OK
            if choice == "Extras":
                ExtrasMenu(self.prompter, self.features).run()
                continue
            if choice == "Uninstall":
                if self.do_uninstall():
                    return EXIT_OK
                continue
            if choice == "Install":
                return self.do_install()

    def do_install(self) -> int:
        previous = self.snapshot_store.load()
        wizard = Wizard(
            self.prompter,
            modes=list_drm_modes(self.host.display_output),
            touch_candidates=list_touch_candidates(),
        )
        snapshot = wizard.run(previous)
        if snapshot is None:
            return EXIT_OK

        ctx = InstallContext(
            snapshot=snapshot,
            host=self.host,
            snapshot_store=self.snapshot_store,
            cmdline=self.cmdline(),
            features=self.features,
            system_manager=self.system_manager,
            packages=self.packages,
            session=self.session,
            base_packages=self.loader.get_base_packages(),
            raspberry_pi=is_raspberry_pi(),
        )

        try:
            persist(ctx)
        except InstallationError as e:
            self.prompter.msgbox(f"{e}\n\n{e.output}")
            return EXIT_FAILURE

        action = self.prompter.menu("Action:", [("Apply", "Install"), ("Exit", "Save Only")], title="Configuration Saved")
        if action != "Apply":
            logger.info("Configuration saved, not applied")
            return EXIT_OK

        progress = BannerProgress() if self.verbose else GaugeProgress(self.prompter)
        try:
            result = install(ctx, progress)
        except InstallationError as e:
            print(f"ERROR: {e}.")
            if e.output:
                print("Error Log:")
                print(e.output)
            return EXIT_FAILURE

        done = "Installation Complete!\n\nPlease reboot your system to apply changes."
        if result.warnings:
            done += "\n\nWarnings:\n" + "\n".join(result.warnings)
        if self.verbose:
            print(">>> INSTALLATION COMPLETE. Please reboot to apply changes.")
            for warning in result.warnings:
                print(f">>> WARNING: {warning}")
        else:
            self.prompter.msgbox(done)
        return EXIT_OK

    def do_uninstall(self) -> bool:
        """Factory reset after confirmation; False if the user declined."""
        if not self.prompter.yesno("WARNING: Full Factory Reset.\n\nProceed?", default_no=True, title="Factory Reset"):
            return False

        uninstaller = Uninstaller(
            packages=self.packages,
            session=self.session,
            snapshot_store=self.snapshot_store,
            features=self.features,
            renderer=self.renderer,
            cmdline=self.cmdline(),
            system_manager=self.system_manager,
        )
        report = uninstaller.run()
        print(">>> UNINSTALL COMPLETE. Reboot recommended.")
        for problem in report.problems:
            print(f">>> WARNING: {problem}")
        return True


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI tool."""
    parser = argparse.ArgumentParser(
        prog="wallpanel-setup",
        description="Turn this machine into a single-purpose Wayland kiosk display",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show command output and plain progress banners instead of a progress gauge",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="Path of the wallpanel.yml settings file",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=DEFAULT_LOG_FILE,
        help=f"Persistent log file (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    # Initialize module-level logger
    global logger
    logger = get_logger(__name__)

    if os.geteuid() != 0:
        print("Please run as root (sudo wallpanel-setup)")
        return EXIT_FAILURE

    loader = ConfigLoader(args.settings) if args.settings else config_loader

    try:
        app = SetupApp(
            loader=loader,
            host=HostContext.detect(),
            prompter=DialogPrompter(),
            system_manager=SystemctlManager(),
            verbose=args.verbose,
        )
        return app.run()
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
