# src/tcgvault/cli.py
from __future__ import annotations

"""
tcgvault CLI

Commands:
  init-db          Create the catalog tables.
  import-file      Parse CSV/JSON catalog rows and upsert them into the DB.
  search           Search cards with filters & pagination.
  show             Show a single card.
  expansions       List expansions with card counts.
  expansion-cards  List the cards of one expansion (collector-number order).
  pricing          Show the pricing block of a card.
  sealed           Search sealed products (optionally within one expansion).

Backend, database URL and API credentials come from the environment
(see tcgvault.config.Settings).

version: 0.1.0
"""

import argparse
import sys
from typing import Optional, Sequence

from . import db
from .config import DEFAULT_GAME_ID, Settings
from .dto import CatalogItem, PageResult
from .importer import import_file
from .logging import setup as setup_logging
from .parsers.base import KINDS, ParserError
from .pricing import PriceBlock
from .repos import CardFilters, QueryOptions
from .services.factory import ServiceFactory, build_default_factory


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def _money(value: Optional[float]) -> str:
    return "N/A" if value is None else f"${value:,.2f}"


def _print_price_block(label: str, block: Optional[PriceBlock]) -> None:
    if block is None:
        print(f"  {label:<11} N/A")
        return
    t = block.trends
    print(
        f"  {label:<11} {_money(block.market)}  "
        f"(low {_money(block.low)}, mid {_money(block.mid)}, high {_money(block.high)})"
    )
    print(
        f"  {'Trends:':<11} 7d {t.days_7:+.1f}%  30d {t.days_30:+.1f}%  "
        f"90d {t.days_90:+.1f}%  180d {t.days_180:+.1f}%"
    )


def _print_text_card(c: CatalogItem) -> None:
    """Readable one-card summary for terminals."""
    print(f"[{c.id}] {c.name}")
    print(f"  Number:     {c.number or '-'}")
    print(f"  Expansion:  {c.expansion_name or '-'}")
    print(f"  Rarity:     {c.rarity or '-'}")
    print(f"  Supertype:  {c.supertype or '-'}")
    if c.types:
        print(f"  Types:      {', '.join(c.types)}")
    if c.artist:
        print(f"  Artist:     {c.artist}")
    print(f"  Value:      {_money(c.market_value)}")
    if c.image_url:
        print(f"  Image:      {c.image_url}")
    print()


def _print_item_rows(result: PageResult) -> None:
    """Compact table-like output for lists/search results."""
    if not result.data:
        print("No results.")
        return
    for c in result.data:
        num = f"#{c.number}  |  " if c.number else ""
        print(f"[{c.id}] {c.name}  |  {num}{c.rarity or '-'}  |  {c.expansion_name or '-'}  |  {_money(c.market_value)}")
    _print_footer(result)


def _print_footer(result: PageResult) -> None:
    more = "  (more)" if result.has_more else ""
    print(f"-- page {result.page}/{max(result.total_pages, 1)}, {result.total} total{more}")


def _options(args, **overrides) -> QueryOptions:
    filters = CardFilters(
        rarity=getattr(args, "rarity", None),
        supertype=getattr(args, "supertype", None),
        artist=getattr(args, "artist", None),
        types=getattr(args, "type", None),
    )
    values = dict(
        page=args.page,
        page_size=args.size,
        sort_by=args.sort or "name",
        sort_order=args.order,
        filters=filters,
    )
    values.update({k: v for k, v in overrides.items() if v is not None})
    return QueryOptions(**values)


# ------------------------------------------------------------------------------
# Command implementations
# ------------------------------------------------------------------------------

def cmd_init_db(args, factory: ServiceFactory) -> int:
    db.init_db()
    print("Catalog tables created.")
    return 0


def cmd_import(args, factory: ServiceFactory) -> int:
    """Import catalog rows from a file."""
    try:
        result = import_file(args.path, args.kind, game_id=args.game)
    except ParserError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1
    print(
        f"Imported {result.processed} row{'' if result.processed == 1 else 's'} "
        f"({result.created} created, {result.updated} updated, {result.skipped} skipped)."
    )
    return 0


def cmd_search(args, factory: ServiceFactory) -> int:
    svc = factory.get_service_for(args.game)
    result = svc.search_cards(args.query or "", _options(args))
    _print_item_rows(result)
    return 0


def cmd_show(args, factory: ServiceFactory) -> int:
    svc = factory.get_service_for(args.game)
    card = svc.get_card_by_id(args.id)
    if card is None:
        print(f"Card {args.id} not found.", file=sys.stderr)
        return 1
    _print_text_card(card)
    return 0


def cmd_expansions(args, factory: ServiceFactory) -> int:
    svc = factory.get_service_for(args.game)
    opts = QueryOptions(
        page=args.page,
        page_size=args.size,
        sort_by=args.sort or "release_date",
        sort_order=args.order or "desc",
        search=args.query,
    )
    result = svc.get_expansions(opts, language=args.language)
    if not result.data:
        print("No expansions.")
        return 0
    for e in result.data:
        print(f"[{e.id}] {e.name}  |  {e.series or '-'}  |  {e.release_date or '-'}  |  {e.total_cards} cards")
    _print_footer(result)
    return 0


def cmd_expansion_cards(args, factory: ServiceFactory) -> int:
    svc = factory.get_service_for(args.game)
    opts = _options(args, sort_by=args.sort or "number")
    result = svc.get_cards_by_expansion(args.expansion_id, opts)
    _print_item_rows(result)
    return 0


def cmd_pricing(args, factory: ServiceFactory) -> int:
    svc = factory.get_service_for(args.game)
    if not svc.has_feature("pricing"):
        print(f"Pricing is not available for {svc.config.name}.", file=sys.stderr)
        return 2
    pricing = svc.get_pricing(args.id)
    if pricing is None:
        print(f"No pricing for {args.id}.", file=sys.stderr)
        return 1
    print(f"[{args.id}] pricing (updated {pricing.last_updated or 'unknown'})")
    _print_price_block("Raw:", pricing.raw)
    _print_price_block("Graded:", pricing.graded)
    return 0


def cmd_sealed(args, factory: ServiceFactory) -> int:
    svc = factory.get_service_for(args.game)
    if not svc.has_feature("sealed"):
        print(f"Sealed products are not available for {svc.config.name}.", file=sys.stderr)
        return 2
    opts = _options(args)
    if args.expansion:
        result = svc.get_sealed_products_by_expansion(args.expansion, opts)
    else:
        result = svc.search_sealed_products(args.query or "", opts)
    _print_item_rows(result)
    return 0


# ------------------------------------------------------------------------------
# argparse wiring
# ------------------------------------------------------------------------------

def _add_paging(sp: argparse.ArgumentParser, *, sort_help: str) -> None:
    sp.add_argument("--page", type=int, default=1)
    sp.add_argument("--size", type=int, default=30)
    sp.add_argument("--sort", default=None, help=sort_help)
    sp.add_argument("--order", choices=("asc", "desc"), default=None)


def _add_filters(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--rarity", default=None, help='Exact rarity, e.g. "Rare Holo".')
    sp.add_argument("--supertype", default=None, help='e.g. "Pokémon", "Trainer".')
    sp.add_argument("--artist", default=None)
    sp.add_argument("--type", default=None, help='Energy type, e.g. "Fire".')


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tcgvault",
        description="tcgvault CLI: search the trading card catalog, expansions and prices."
    )
    p.add_argument("--game", default=DEFAULT_GAME_ID, help=f"Game id (default: {DEFAULT_GAME_ID}).")
    p.add_argument("--log-level", default=None, help="Overrides TCGVAULT_LOG_LEVEL.")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("init-db", help="Create the catalog tables.")
    sp.set_defaults(func=cmd_init_db)

    sp = sub.add_parser("import-file", help="Import catalog rows from CSV/JSON.")
    sp.add_argument("path", help="Path to CSV/JSON file.")
    sp.add_argument("--kind", choices=KINDS, default="cards", help="What the rows are (default: cards).")
    sp.set_defaults(func=cmd_import)

    sp = sub.add_parser("search", help="Search cards with filters & pagination.")
    sp.add_argument("query", nargs="?", default="", help="Text over name, number, artist, expansion.")
    _add_filters(sp)
    _add_paging(sp, sort_help='Column to sort by, e.g. "name", "number", "rarity".')
    sp.set_defaults(func=cmd_search)

    sp = sub.add_parser("show", help="Show a single card.")
    sp.add_argument("id", help="Card id.")
    sp.set_defaults(func=cmd_show)

    sp = sub.add_parser("expansions", help="List expansions with card counts.")
    sp.add_argument("--query", default=None, help="Substring over the expansion name.")
    sp.add_argument("--language", choices=("english", "japanese"), default=None)
    _add_paging(sp, sort_help='Default "release_date" (newest first).')
    sp.set_defaults(func=cmd_expansions)

    sp = sub.add_parser("expansion-cards", help="List the cards of one expansion.")
    sp.add_argument("expansion_id", help="Expansion id.")
    _add_filters(sp)
    _add_paging(sp, sort_help='Default "number" (collector-number order).')
    sp.set_defaults(func=cmd_expansion_cards)

    sp = sub.add_parser("pricing", help="Show raw and graded pricing for a card.")
    sp.add_argument("id", help="Card id.")
    sp.set_defaults(func=cmd_pricing)

    sp = sub.add_parser("sealed", help="Search sealed products.")
    sp.add_argument("query", nargs="?", default="", help="Text over name and description.")
    sp.add_argument("--expansion", default=None, help="Only products of this expansion id.")
    _add_paging(sp, sort_help='Column to sort by (default "name").')
    sp.set_defaults(func=cmd_sealed)

    return p


def main(argv: Optional[Sequence[str]] = None, *, factory: Optional[ServiceFactory] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    setup_logging(args.log_level or settings.log_level)

    if factory is None and args.func not in (cmd_init_db, cmd_import):
        try:
            factory = build_default_factory(settings)
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2

    try:
        return args.func(args, factory)
    except ValueError as e:
        # bad paging/sort arguments
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
