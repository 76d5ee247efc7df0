#!/usr/bin/env python3
"""
Disk inspection CLI for overlay_disk

Prints block maps of local images or S3 objects and dumps byte ranges through
a disk stream.

Usage:
    python -m overlay_disk.scripts.blockmap_cli blockmap disk.img --block-size 4096 --checksums
    python -m overlay_disk.scripts.blockmap_cli dump disk.img --offset 512 --length 1024 --out part.bin
    python -m overlay_disk.scripts.blockmap_cli s3-blockmap my-bucket images/disk.img --block-size 1048576
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List
from typing import Optional

import aiofiles

from overlay_disk.config import get_config
from overlay_disk.device_context import generate_device_id
from overlay_disk.disk import FileDisk
from overlay_disk.disk import S3Disk
from overlay_disk.disk import open_file
from overlay_disk.disk.s3_disk import make_s3_client
from overlay_disk.errors import DiskError
from overlay_disk.logging_config import setup_loki_logging


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Disk inspection CLI for overlay_disk")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # blockmap command
    blockmap_parser = subparsers.add_parser("blockmap", help="Print the block map of a local image")
    blockmap_parser.add_argument("path", help="Image file or block device")
    blockmap_parser.add_argument("--block-size", type=int, default=4096, help="Block size in bytes")
    blockmap_parser.add_argument("--checksums", action="store_true", help="Compute a sha256 per range")

    # dump command
    dump_parser = subparsers.add_parser("dump", help="Copy a byte range of a local image")
    dump_parser.add_argument("path", help="Image file or block device")
    dump_parser.add_argument("--offset", type=int, default=0, help="First byte to copy")
    dump_parser.add_argument("--length", type=int, help="Number of bytes (default: to the end)")
    dump_parser.add_argument("--high-water-mark", type=int, help="Bytes per read")
    dump_parser.add_argument("--out", help="Output file (default: stdout)")

    # s3-blockmap command
    s3_parser = subparsers.add_parser("s3-blockmap", help="Print the block map of an S3 object")
    s3_parser.add_argument("bucket", help="Bucket name")
    s3_parser.add_argument("key", help="Object key")
    s3_parser.add_argument("--block-size", type=int, default=4096, help="Block size in bytes")
    s3_parser.add_argument("--checksums", action="store_true", help="Compute a sha256 per range")

    return parser


async def run_blockmap(path: str, block_size: int, checksums: bool) -> str:
    async with open_file(path, os.O_RDONLY) as fd:
        disk = FileDisk(fd, read_only=True, device_id=generate_device_id())
        block_map = await disk.get_block_map(block_size, checksums)
    return block_map.to_json()


async def run_dump(
    path: str,
    offset: int,
    length: Optional[int],
    high_water_mark: Optional[int],
    out_path: Optional[str],
) -> int:
    written = 0
    async with open_file(path, os.O_RDONLY) as fd:
        disk = FileDisk(fd, read_only=True, device_id=generate_device_id())
        stream = await disk.get_stream(offset, length, high_water_mark)
        if out_path:
            async with aiofiles.open(out_path, "wb") as out:
                async for piece in stream:
                    await out.write(piece)
                    written += len(piece)
        else:
            async for piece in stream:
                sys.stdout.buffer.write(piece)
                written += len(piece)
            sys.stdout.buffer.flush()
    logger.info(f"DUMP: copied {written} bytes from {path} offset={offset}")
    return written


async def run_s3_blockmap(bucket: str, key: str, block_size: int, checksums: bool) -> str:
    disk = S3Disk(make_s3_client(), bucket, key, device_id=generate_device_id())
    block_map = await disk.get_block_map(block_size, checksums)
    return block_map.to_json()


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    setup_loki_logging(get_config(), "overlay-disk-cli")

    try:
        if args.command == "blockmap":
            print(await run_blockmap(args.path, args.block_size, args.checksums))
        elif args.command == "dump":
            await run_dump(args.path, args.offset, args.length, args.high_water_mark, args.out)
        elif args.command == "s3-blockmap":
            print(await run_s3_blockmap(args.bucket, args.key, args.block_size, args.checksums))
    except (DiskError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
