"""
Command-line interface for the apisign Python SDK
Signs parameter sets and verifies captured webhook callbacks
"""

import argparse
import json
import sys
from typing import List, Optional

from .version import __version__
from .exceptions import ApiSignSDKError
from .signing.codec import SigningCodec
from .signing.types import DEFAULT_MAX_AGE_SECONDS, HashType, NullValuePolicy, ParamPairs
from .verification.verifier import InboundSignatureVerifier


def parse_param(text: str):
    """Parse a ``name=value`` argument; the value may itself contain '='."""
    name, separator, value = text.partition("=")
    if not separator or not name:
        raise argparse.ArgumentTypeError(f"Expected name=value, got {text!r}")
    return name, value


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='apisign-cli',
        description='apisign SDK command-line interface for request signing and webhook verification'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'apisign Python SDK {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    setup_sign_parser(subparsers)
    setup_verify_parser(subparsers)
    return parser


def _add_common_arguments(command_parser):
    command_parser.add_argument('--secret', required=True, help='Shared signature secret')
    command_parser.add_argument(
        '--hash-type',
        choices=[h.value for h in HashType],
        default=HashType.MD5.value,
        help='Digest strategy (default: md5)'
    )
    command_parser.add_argument(
        '--null-policy',
        choices=[p.value for p in NullValuePolicy],
        default=NullValuePolicy.SKIP_BLANK.value,
        help='Treatment of empty values (default: skip-blank)'
    )
    command_parser.add_argument('params', nargs='*', type=parse_param, metavar='name=value',
                                help='Request parameters')


def setup_sign_parser(subparsers):
    """Setup sign subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Sign a parameter set')
    _add_common_arguments(sign_parser)
    sign_parser.add_argument('--timestamp', type=int, help='Timestamp to sign with (default: now)')
    sign_parser.add_argument('--show-canonical', action='store_true', help='Also print the canonical string')


def setup_verify_parser(subparsers):
    """Setup verify subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify a signed parameter set')
    _add_common_arguments(verify_parser)
    verify_parser.add_argument(
        '--max-age',
        type=int,
        default=DEFAULT_MAX_AGE_SECONDS,
        help=f'Replay window in seconds (default: {DEFAULT_MAX_AGE_SECONDS})'
    )
    verify_parser.add_argument('--now', type=int, help='Current time to verify against (default: now)')


def handle_sign_command(args) -> int:
    """Print the signed parameters as JSON."""
    codec = SigningCodec(HashType(args.hash_type), NullValuePolicy(args.null_policy))
    params: ParamPairs = list(args.params)
    envelope = codec.sign(params, args.secret, args.timestamp)

    output = {"params": envelope.as_dict()}
    if args.show_canonical:
        output["canonical"] = envelope.canonical
    print(json.dumps(output, indent=2))
    return 0


def handle_verify_command(args) -> int:
    """Exit 0 when the parameters verify, 1 otherwise."""
    verifier = InboundSignatureVerifier(
        args.secret,
        HashType(args.hash_type),
        max_age_seconds=args.max_age,
        null_value_policy=NullValuePolicy(args.null_policy)
    )
    result = verifier.check(list(args.params), now_seconds=args.now)
    if result.valid:
        print("✓ Signature is valid")
        return 0
    print(f"✗ Signature is invalid: {result.reason}")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'verify':
            return handle_verify_command(args)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except ApiSignSDKError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
