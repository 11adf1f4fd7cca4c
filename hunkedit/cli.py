"""
CLI entry point — argument parsing and app launch.
"""

import argparse
import logging
import sys

from .config import Config
from .diff.modes import DiffMode, DiffView
from .git_utils import GitRepository
from .logger import setup_logger

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="hunkedit — inspect and edit working-tree changes",
    )
    parser.add_argument("path", nargs="?", default=".",
                        help="Repository to open (default: current directory)")
    parser.add_argument("--mode", choices=[m.value for m in DiffMode], default=None,
                        help="Compare against the index, HEAD or a branch")
    parser.add_argument("--view", choices=[v.value for v in DiffView], default=None,
                        help="Initial diff layout")
    parser.add_argument("--branch", default=None,
                        help="Branch to compare against in branch mode")
    parser.add_argument("--config", default=None,
                        help="Path to a .hunkedit.yaml config file")
    parser.add_argument("--no-watch", action="store_true",
                        help="Do not refresh automatically on file changes")
    parser.add_argument("--log-dir", default=None,
                        help="Directory for log files (default: from config)")
    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """CLI arguments override every other configuration source."""
    if args.mode:
        config.DIFF_MODE = DiffMode(args.mode)
    if args.view:
        config.DIFF_VIEW = DiffView(args.view)
    if args.branch:
        config.COMPARE_BRANCH = args.branch
        if not args.mode:
            config.DIFF_MODE = DiffMode.BRANCH
    if args.no_watch:
        config.WATCH = False
    if args.log_dir:
        config.LOG_DIR = args.log_dir
    return config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = apply_args(Config.load(args.config), args)

    repo = GitRepository(args.path)
    if not repo.is_repo():
        print(f"Not a git repository: {repo.root}", file=sys.stderr)
        return 1

    setup_logger(config.LOG_DIR)
    logger.info("[CLI] Opening %s (mode=%s, view=%s)",
                repo.root, config.DIFF_MODE.value, config.DIFF_VIEW.value)

    from .tui import HunkEditApp

    HunkEditApp(repo, config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
