"""
Ternary mesh tree CLI entry point.

Build trees over files, check leaf contents against saved snapshots and print
membership proofs.

Usage::

    python -m ternary_mesh build a.bin b.bin c.bin --output tree.json
    python -m ternary_mesh verify tree.json 1 b.bin
    python -m ternary_mesh proof tree.json 1
    python -m ternary_mesh selftest

Options:
    -v, --verbose   Enable debug logging
    --no-color      Disable colored logging output
    --hash          Hash primitive (blake3 or sha256, default from TMT_HASH_ALGORITHM)

Tree tunables are read from TMT_* environment variables (see `load_config`).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import TreeConfig, load_config
from .tree import TernaryMeshTree
from .types import TreeError

logger = logging.getLogger(__name__)

SELFTEST_BLOCKS = [b"block1", b"block2", b"block3"]
"""Blocks used by the `selftest` command."""


def _short_name(name: str) -> str:
    """Drop the package prefix: `ternary_mesh.tree.builder` -> `tree.builder`."""
    prefix = f"{__package__}."
    return name[len(prefix) :] if name.startswith(prefix) else name


class ColoredFormatter(logging.Formatter):
    """
    Compact colored log lines tagged with the running subcommand.

    Example: `12:00:01 DEBUG [build] tree.builder: Built tree: 4 leaves ...`
    """

    DIM = "\x1b[2m"
    MAGENTA = "\x1b[35m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: DIM,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def __init__(self, command: str | None = None) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.command = command

    def format(self, record: logging.LogRecord) -> str:
        """Render one record, appending any traceback."""
        color = self.LEVEL_COLORS.get(record.levelno, "")
        tag = f" {self.MAGENTA}[{self.command}]{self.RESET}" if self.command else ""
        line = (
            f"{self.DIM}{self.formatTime(record, self.datefmt)}{self.RESET} "
            f"{color}{record.levelname:<5}{self.RESET}{tag} "
            f"{_short_name(record.name)}: {record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    verbose: bool = False, no_color: bool = False, command: str | None = None
) -> None:
    """Send log records to stderr, colored unless `no_color` is set."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if no_color:
        tag = f" [{command}]" if command else ""
        handler.setFormatter(
            logging.Formatter(f"%(asctime)s %(levelname)-5s{tag} %(name)s: %(message)s", "%H:%M:%S")
        )
    else:
        handler.setFormatter(ColoredFormatter(command))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def _load_tree(snapshot: Path, config: TreeConfig) -> TernaryMeshTree:
    return TernaryMeshTree.deserialize(snapshot.read_text(), config)


def cmd_build(args: argparse.Namespace, config: TreeConfig) -> int:
    """Build a tree over the given files and print its root."""
    blocks = [path.read_bytes() for path in args.files]
    tree = TernaryMeshTree(config)
    tree.build(blocks)

    root = tree.root_hash
    logger.info(
        "Built tree over %d blocks (height %d, %d nodes)",
        tree.leaf_count,
        tree.get_height(),
        tree.node_count,
    )
    print(root.hex() if root is not None else "")

    if args.output is not None:
        args.output.write_text(tree.serialize())
        logger.info("Wrote snapshot to %s", args.output)
    return 0


def cmd_verify(args: argparse.Namespace, config: TreeConfig) -> int:
    """Check a file's content against a leaf of a saved tree."""
    tree = _load_tree(args.snapshot, config)
    ok = tree.verify(args.index, args.file.read_bytes())
    print("verified" if ok else "not verified")
    return 0 if ok else 1


def cmd_proof(args: argparse.Namespace, config: TreeConfig) -> int:
    """Print the membership proof of a leaf of a saved tree."""
    tree = _load_tree(args.snapshot, config)
    print(tree.generate_proof(args.index).to_json(indent=2))
    return 0


def cmd_selftest(args: argparse.Namespace, config: TreeConfig) -> int:
    """Run a build, verify, update and snapshot round trip."""
    tree = TernaryMeshTree(config)
    tree.build(SELFTEST_BLOCKS)

    if not tree.verify(0, b"block1"):
        logger.error("Verification before update failed")
        return 1

    tree.update(0, b"new_block1")
    if not tree.verify(0, b"new_block1"):
        logger.error("Verification after update failed")
        return 1

    restored = TernaryMeshTree.deserialize(tree.serialize(), config)
    if restored.root_hash != tree.root_hash:
        logger.error("Root hash mismatch after deserialize")
        return 1

    logger.info("Self test passed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Assemble the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ternary_mesh",
        description="Ternary mesh tree tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    parser.add_argument(
        "--hash",
        choices=["blake3", "sha256"],
        default=None,
        help="Hash primitive (default: blake3, or TMT_HASH_ALGORITHM)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Build a tree over files")
    build.add_argument("files", nargs="+", type=Path, help="Files whose contents become leaves")
    build.add_argument(
        "--output", "-o", type=Path, default=None, help="Write the JSON snapshot here"
    )
    build.set_defaults(handler=cmd_build)

    verify = sub.add_parser("verify", help="Verify a file against a leaf of a snapshot")
    verify.add_argument("snapshot", type=Path, help="Path to a JSON snapshot")
    verify.add_argument("index", type=int, help="Leaf index")
    verify.add_argument("file", type=Path, help="File holding the claimed leaf content")
    verify.set_defaults(handler=cmd_verify)

    proof = sub.add_parser("proof", help="Print the membership proof of a leaf")
    proof.add_argument("snapshot", type=Path, help="Path to a JSON snapshot")
    proof.add_argument("index", type=int, help="Leaf index")
    proof.set_defaults(handler=cmd_proof)

    selftest = sub.add_parser("selftest", help="Run a quick round trip")
    selftest.set_defaults(handler=cmd_selftest)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose, args.no_color, args.command)

    try:
        config = load_config()
        if args.hash is not None:
            config = config.model_copy(update={"hash_algorithm": args.hash})
        return args.handler(args, config)
    except (TreeError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
