"""Command line entry point for MapKeeper."""

import argparse
import sys
from pathlib import Path

from mapkeeper import __version__
from mapkeeper.core.exceptions import MapKeeperError
from mapkeeper.core.maps import (
    DirectoryVersionLocator,
    GameVersion,
    LocalMapsManager,
    compute_map_hash,
)
from mapkeeper.core.maps.manifest import is_manifest_name, read_manifest
from mapkeeper.core.progress import Progress, run_sync
from mapkeeper.utils.logger import setup_logging
from mapkeeper.utils.settings import Settings


def _print_progress(progress: Progress) -> None:
    print(f"\r{progress.current}/{progress.total}", end="", file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapkeeper", description="Manage custom maps of installed game versions."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="INI settings file")
    parser.add_argument(
        "--installs",
        type=Path,
        default=Path.cwd(),
        help="Folder holding one subfolder per installed game version",
    )
    parser.add_argument(
        "--game-version",
        dest="game_version",
        help="Installed version to work on (default: shared maps folder)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("scan", help="List installed maps")

    import_parser = subparsers.add_parser("import", help="Import map archives")
    import_parser.add_argument("archives", nargs="+", type=Path)

    export_parser = subparsers.add_parser("export", help="Export maps to a ZIP file")
    export_parser.add_argument("output", type=Path)
    export_parser.add_argument("--hash", dest="hashes", nargs="*", default=[])

    delete_parser = subparsers.add_parser("delete", help="Delete maps by hash")
    delete_parser.add_argument("hashes", nargs="+")

    hash_parser = subparsers.add_parser("hash", help="Print the content hash of a map folder")
    hash_parser.add_argument("folder", type=Path)

    return parser


def _hash_folder(folder: Path) -> int:
    info_file = next((f for f in folder.iterdir() if is_manifest_name(f.name)), None)
    if info_file is None:
        print(f"No Info.dat in {folder}", file=sys.stderr)
        return 1
    print(compute_map_hash(folder, read_manifest(info_file)))
    return 0


def run(args: argparse.Namespace) -> int:
    if args.command == "hash":
        return _hash_folder(args.folder)

    settings = Settings(args.config) if args.config else Settings()
    manager = LocalMapsManager(DirectoryVersionLocator(args.installs), settings=settings)
    version = GameVersion(args.game_version) if args.game_version else None

    if args.command == "scan":
        result = run_sync(manager.get_maps(version), _print_progress)
        print(file=sys.stderr)
        for local_map in result.items if result else []:
            info = local_map.map_info
            print(f"{local_map.hash}  {local_map.dirname}  {info.song_name} - {info.song_author_name}")
        return 0

    if args.command == "import":
        result = run_sync(manager.import_maps(args.archives, version), _print_progress)
        print(file=sys.stderr)
        for local_map in result.items if result else []:
            print(f"{local_map.hash}  {local_map.path}")
        return 0

    if args.command == "export":
        maps = [manager.get_map_from_hash(h, version) for h in args.hashes]
        missing = [h for h, m in zip(args.hashes, maps) if m is None]
        if missing:
            print(f"Unknown map hash(es): {', '.join(missing)}", file=sys.stderr)
            return 1
        run_sync(manager.export_maps(version, maps, args.output), _print_progress)
        print(file=sys.stderr)
        print(args.output)
        return 0

    if args.command == "delete":
        result = run_sync(manager.delete_maps_from_hashes(version, args.hashes), _print_progress)
        print(file=sys.stderr)
        print(f"Deleted {result.deleted if result else 0} map(s)")
        return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(Settings(args.config) if args.config else None)

    try:
        return run(args)
    except (MapKeeperError, OSError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
