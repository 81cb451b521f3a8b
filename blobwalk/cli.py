# cli.py -- Command line interface for blobwalk
# Copyright (C) 2026 Blobwalk contributors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# Blobwalk is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Simple command-line interface to blobwalk.

Usage: blobwalk [--config FILE] [-v] COMMAND ARGS
"""

__all__ = ["Command", "commands", "main"]

import argparse
import logging
import signal
import sys
from collections.abc import Sequence
from configparser import ConfigParser
from types import FrameType

from .errors import (
    MalformedRefError,
    ManifestLoadError,
    NotFoundError,
    TransportError,
)
from .log_utils import default_logging_config
from .transport import BlobStoreTransport


def signal_int(signal: int, frame: FrameType | None) -> None:
    """Handle interrupt signal by exiting."""
    sys.exit(1)


class Command:
    """A blobwalk subcommand."""

    def __init__(self, conf: ConfigParser | None = None) -> None:
        self.conf = conf

    def open(self, url: str) -> BlobStoreTransport:
        """Open a transport for a repository URL."""
        return BlobStoreTransport.from_url(url, self.conf)

    def run(self, args: Sequence[str]) -> int | None:
        """Run the command."""
        raise NotImplementedError(self.run)


class cmd_ls_remote(Command):
    """List references in a remote repository."""

    def run(self, args: Sequence[str]) -> None:
        parser = argparse.ArgumentParser(prog="blobwalk ls-remote")
        parser.add_argument(
            "--symref", action="store_true", help="Show symbolic references"
        )
        parser.add_argument("url", help="Remote URL to list references from")
        parsed_args = parser.parse_args(args)
        with self.open(parsed_args.url) as transport:
            conn = transport.open_fetch()
            try:
                refs = conn.get_refs()
            finally:
                conn.close()

        if parsed_args.symref:
            for name, ref in refs.items():
                if ref.is_symbolic:
                    sys.stdout.write(
                        f"ref: {ref.target.name.decode()}\t{name.decode()}\n"
                    )
        for name, ref in refs.items():
            if ref.object_id is not None:
                sys.stdout.write(f"{ref.object_id.decode()}\t{name.decode()}\n")


class cmd_ls_packs(Command):
    """List the complete packs in a remote repository."""

    def run(self, args: Sequence[str]) -> None:
        parser = argparse.ArgumentParser(prog="blobwalk ls-packs")
        parser.add_argument("url", help="Remote URL to list packs from")
        parsed_args = parser.parse_args(args)
        with self.open(parsed_args.url) as transport:
            conn = transport.open_fetch()
            try:
                names = conn.database.get_pack_names()
            finally:
                conn.close()
        for name in sorted(names):
            sys.stdout.write(f"{name}\n")


class cmd_manifest(Command):
    """Show the versions tracked for a remote repository."""

    def run(self, args: Sequence[str]) -> None:
        parser = argparse.ArgumentParser(prog="blobwalk manifest")
        parser.add_argument("url", help="Remote URL of the repository")
        parsed_args = parser.parse_args(args)
        with self.open(parsed_args.url) as transport:
            for key, version in transport.manifest.items():
                sys.stdout.write(f"{version}\t{key}\n")


commands = {
    "ls-packs": cmd_ls_packs,
    "ls-remote": cmd_ls_remote,
    "manifest": cmd_manifest,
}


def main(argv: Sequence[str] | None = None) -> int | None:
    """Main entry point for the blobwalk CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code or None
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        prog="blobwalk",
        description="Inspect git repositories stored in blob stores",
    )
    parser.add_argument("--config", help="Configuration file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )
    parser.add_argument(
        "command",
        help=f"Command to run. Available: {', '.join(sorted(commands.keys()))}",
    )
    parser.add_argument("args", nargs=argparse.REMAINDER)
    parsed_args = parser.parse_args(argv)

    default_logging_config(verbose=parsed_args.verbose)

    try:
        cmd_kls = commands[parsed_args.command]
    except KeyError:
        logging.fatal("No such subcommand: %s", parsed_args.command)
        return 1

    try:
        conf = None
        if parsed_args.config:
            from .config import load_conf

            conf = load_conf(parsed_args.config)
        return cmd_kls(conf).run(parsed_args.args)
    except (
        MalformedRefError,
        ManifestLoadError,
        NotFoundError,
        TransportError,
        FileNotFoundError,
        ValueError,
    ) as e:
        logging.fatal("%s", e)
        return 1


def _main() -> None:
    signal.signal(signal.SIGINT, signal_int)
    sys.exit(main())


if __name__ == "__main__":
    _main()
