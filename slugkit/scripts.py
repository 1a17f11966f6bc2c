"""Generate slugs, compute deduplication hashes and check custom slugs."""
import argparse
import asyncio
import json
import logging
import sys

from .alphabets import AlphabetType
from .base.domain import BadRequest
from .custom_slug import CustomSlugValidator
from .deduplication import CanonicalHasher
from .settings import SlugSettings
from .strategies import SlugOptions
from .strategies import StrategyRegistry

logger = logging.getLogger(__name__)


def key_value(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got '{value}'")
    return key, val


def get_parser():
    """Return argument parser."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        default=False,
        help="Verbose output",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Generate random slugs")
    generate.add_argument("--strategy", default=None, help="nanoid or uuid")
    generate.add_argument("--length", type=int, default=None)
    generate.add_argument(
        "--alphabet-type",
        choices=[x.value for x in AlphabetType],
        default=None,
    )
    generate.add_argument("--count", type=int, default=1)

    hash_ = commands.add_parser("hash", help="Compute a deduplication hash")
    hash_.add_argument("url", metavar="URL")
    hash_.add_argument(
        "--meta",
        type=key_value,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Metadata entry (repeatable)",
    )
    hash_.add_argument(
        "--field", action="append", default=None, help="Field to include (repeatable)"
    )
    hash_.add_argument(
        "--enhanced",
        action="store_true",
        default=False,
        help="Canonicalize URL and metadata before hashing",
    )

    check = commands.add_parser("check", help="Validate a custom slug")
    check.add_argument("slug", metavar="SLUG")
    check.add_argument("--normalize", action="store_true", default=False)

    commands.add_parser("strategies", help="List the available strategies")
    return parser


async def never_taken(slug: str, namespace: str | None) -> bool:
    return False


def run(options, settings: SlugSettings) -> int:
    if options.command == "generate":
        registry = StrategyRegistry(settings)
        slug_options = SlugOptions(
            length=options.length, alphabet_type=options.alphabet_type
        )
        for _ in range(options.count):
            print(registry.generate(options.strategy, slug_options))
    elif options.command == "hash":
        hasher = CanonicalHasher()
        func = hasher.canonical_hash if options.enhanced else hasher.hash
        print(func(options.url, dict(options.meta), options.field))
    elif options.command == "check":
        validation = asyncio.run(
            CustomSlugValidator(settings).validate(
                options.slug, never_taken, auto_normalize=options.normalize
            )
        )
        print(json.dumps(validation.model_dump(), indent=2))
        if not validation.is_valid:
            return 1
    elif options.command == "strategies":
        registry = StrategyRegistry(settings)
        print(
            json.dumps(
                {
                    "strategies": [x.model_dump() for x in registry.descriptors()],
                    "configuration": registry.configuration(),
                },
                indent=2,
            )
        )
    return 0


def main():  # pragma: no cover
    """Call main command with args from parser.

    This method is called when you run 'slugkit', this is configured in
    'pyproject.toml'.
    """
    options = get_parser().parse_args()
    if options.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    try:
        sys.exit(run(options, SlugSettings()))
    except BadRequest as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception:
        logger.exception("An exception has occurred.")
        sys.exit(1)
