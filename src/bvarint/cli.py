import argparse
import logging
import sys
import textwrap
from functools import wraps

from .codec import LENGTH_CLASSES, MAX_VALUE, TruncatedInput, decode_bvarint, encode_bvarint
from .settings import (
    BvarintSettings,
    configure_logging,
    SETTING_CHECK_EXHAUSTIVE_LIMIT,
    SETTING_CHECK_SAMPLES,
    SETTING_CHECK_SEED,
    SETTING_OUTPUT_UPPERCASE,
)
from .validation import CheckFailure, LengthClassTableError, run_checks

logger = logging.getLogger(__name__)


def reports_errors(func):
    """Decorator for commands that turn codec errors into an exit status.

    The decorated function receives (settings, output, args). Errors caused by bad
    input are printed to stderr as "Error: ..." and end the process with status 1.
    """
    @wraps(func)
    def wrapper(settings, output, args):
        try:
            return func(settings, output, args)
        except (TruncatedInput, CheckFailure, LengthClassTableError, ValueError) as e:
            logger.info("%s failed: %s", args.command, e)
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    return wrapper


def _parse_value(text: str) -> int:
    # Accepts decimal or prefixed literals such as 0xff and 0b101.
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")


def bvarint_main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog='bvarint',
        description='Encode and decode order-preserving variable-length unsigned integers, and check the ordering '
                    'properties of the encoding.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              bvarint encode 5 1000 70000
              bvarint decode 05f3f8fa011170
              bvarint check --samples 100000
            ''').strip()
    )
    parser.add_argument(
        '--settings',
        metavar='PATH',
        help='Path to a TOML settings file. If not provided, uses BVARINT_SETTINGS environment variable or '
             'bvarint.toml in the current directory.')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file. If not provided, uses logging.path from settings or no logging.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to logging.level from settings or INFO.')
    subparsers = parser.add_subparsers(
        dest='command',
        title='Commands',
        description='Available commands',
        help='Use "bvarint COMMAND --help" for command-specific help'
    )
    subparsers.required = True

    parser_encode = subparsers.add_parser(
        'encode',
        help='Encode integers and print the encodings as hex',
        description='Encodes each VALUE (decimal, or with a 0x/0o/0b prefix) and prints one hex encoding per line.')
    parser_encode.add_argument(
        'values',
        nargs='+',
        type=_parse_value,
        metavar='VALUE',
        help='Integers between 0 and 2^64-1')
    parser_encode.add_argument(
        '--concat',
        action='store_true',
        help='Print the concatenation of all encodings as a single hex string')
    parser_encode.set_defaults(method=_encode)

    parser_decode = subparsers.add_parser(
        'decode',
        help='Decode a hex string of concatenated encodings',
        description='Decodes back-to-back encodings and prints one value per line. Whitespace in the hex input is '
                    'ignored.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              bvarint decode f101
              bvarint decode "05 f9 01 1c"
              bvarint decode --offset 1 0005
            ''').strip())
    parser_decode.add_argument(
        'data',
        nargs='+',
        metavar='HEX',
        help='Hex-encoded bytes; several arguments are joined')
    parser_decode.add_argument(
        '--offset',
        type=int,
        metavar='N',
        default=0,
        help='Byte offset of the first encoding (default: 0)')
    parser_decode.add_argument(
        '--lengths',
        action='store_true',
        help='Also print the number of bytes each value occupies')
    parser_decode.set_defaults(method=_decode)

    parser_table = subparsers.add_parser(
        'table',
        help='Print the length-class table',
        description='Shows, for each length class, its lead bytes, encoded length and value range.')
    parser_table.set_defaults(method=_table)

    parser_check = subparsers.add_parser(
        'check',
        help='Verify round-trip and ordering properties of the encoding',
        description='Verifies the length-class table, round-trips and compares consecutive small values, every pair '
                    'of boundary values, and random value pairs.')
    parser_check.add_argument(
        '--samples',
        type=int,
        metavar='N',
        help='Number of random pairs to compare (default: check.samples setting or 10000)')
    parser_check.add_argument(
        '--seed',
        type=int,
        metavar='S',
        help='Seed for the random pairs (default: check.seed setting or a fresh seed)')
    parser_check.add_argument(
        '--exhaustive-limit',
        type=int,
        metavar='N',
        help='Check every value below N (default: check.exhaustive_limit setting or 65536)')
    parser_check.set_defaults(method=_check)

    args = parser.parse_args(argv)

    settings = BvarintSettings.locate(args.settings)
    configure_logging(settings, args.log_file, args.log_level)

    args.method(settings, sys.stdout, args)


def _format_hex(settings: BvarintSettings, data: bytes) -> str:
    text = data.hex()
    if settings.get(SETTING_OUTPUT_UPPERCASE, False):
        text = text.upper()
    return text


@reports_errors
def _encode(settings: BvarintSettings, output, args):
    encodings = [encode_bvarint(value) for value in args.values]
    if args.concat:
        print(_format_hex(settings, b''.join(encodings)), file=output)
    else:
        for encoded in encodings:
            print(_format_hex(settings, encoded), file=output)


@reports_errors
def _decode(settings: BvarintSettings, output, args):
    data = bytes.fromhex(''.join(args.data))
    offset = args.offset
    if offset < 0 or offset > len(data):
        raise ValueError(f"Offset {offset} is outside the {len(data)}-byte input")

    while offset < len(data):
        value, consumed = decode_bvarint(data, offset)
        if args.lengths:
            print(f"{value}\t{consumed}", file=output)
        else:
            print(value, file=output)
        offset += consumed


@reports_errors
def _table(settings: BvarintSettings, output, args):
    print(f"{'class':>5}  {'lead bytes':<10}  {'length':>6}  {'min value':>20}  {'max value':>20}", file=output)
    for length_class in LENGTH_CLASSES:
        if length_class.first_lead == length_class.last_lead:
            leads = f"{length_class.first_lead:02x}"
        else:
            leads = f"{length_class.first_lead:02x}-{length_class.last_lead:02x}"
        print(f"{length_class.class_id:>5}  {leads:<10}  {length_class.encoded_length:>6}  "
              f"{length_class.min_value:>20}  {length_class.max_value:>20}", file=output)


@reports_errors
def _check(settings: BvarintSettings, output, args):
    samples = args.samples if args.samples is not None else settings.get(SETTING_CHECK_SAMPLES, 10000)
    seed = args.seed if args.seed is not None else settings.get(SETTING_CHECK_SEED)
    limit = args.exhaustive_limit
    if limit is None:
        limit = settings.get(SETTING_CHECK_EXHAUSTIVE_LIMIT, 0x10000)
    if samples < 0 or limit < 0:
        raise ValueError("--samples and --exhaustive-limit must not be negative")
    limit = min(limit, MAX_VALUE + 1)

    report = run_checks(samples=samples, seed=seed, exhaustive_limit=limit)
    print(f"OK: {report.round_trips} round trips, {report.ordered_pairs} ordered pairs, "
          f"{report.random_pairs} random pairs (seed {report.seed})", file=output)


if __name__ == '__main__':
    bvarint_main()
