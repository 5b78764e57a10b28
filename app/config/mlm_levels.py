"""
Single source of truth for MLM level percentage tables.

Tables are plain data so that the distribution engine can be handed a
different set (tests, admin overrides) without touching code. A JSON file
named by LEVEL_TABLES_PATH may replace any table or route:

    {
        "tables": {"mlm10": {"1": "4", "2": "2"}},
        "routes": {"game_win": {"table": "mlm10", "wallet": "withdrawal"}}
    }
"""

import json
from decimal import Decimal
from pathlib import Path
from typing import NamedTuple

from loguru import logger

from app.models.enums import ShareType, WalletBucket


class ShareRoute(NamedTuple):
    """Where a share type takes its percentages from and which wallet it credits."""

    table: str | None  # None disables the share type
    wallet: WalletBucket


def _flat(levels: range, percent: str) -> dict[int, Decimal]:
    return {level: Decimal(percent) for level in levels}


# 10-level table used by withdrawal and game-win distributions
MLM10_TABLE: dict[int, Decimal] = {
    1: Decimal("4.00"),
    2: Decimal("2.00"),
    3: Decimal("1.00"),
    4: Decimal("0.50"),
    5: Decimal("0.40"),
    6: Decimal("0.30"),
    7: Decimal("0.30"),
    8: Decimal("0.40"),
    9: Decimal("0.50"),
    10: Decimal("0.60"),
}

# 30-level table used by scheduled profit sharing
MLM30_TABLE: dict[int, Decimal] = {
    1: Decimal("15"),
    2: Decimal("10"),
    3: Decimal("5"),
    4: Decimal("3"),
    5: Decimal("4"),
    **_flat(range(6, 11), "3"),
    **_flat(range(11, 21), "2.5"),
    **_flat(range(21, 31), "4.5"),
}

# 1% to each of the first ten ancestors of a depositor
DEPOSIT_FLAT_TABLE: dict[int, Decimal] = _flat(range(1, 11), "1")

# Direct-referrer-only bonuses
DIRECT_FIRST_DEPOSIT_TABLE: dict[int, Decimal] = {1: Decimal("6")}
DIRECT_WITHDRAWAL_TABLE: dict[int, Decimal] = {1: Decimal("10")}

DEFAULT_TABLES: dict[str, dict[int, Decimal]] = {
    "mlm10": MLM10_TABLE,
    "mlm30": MLM30_TABLE,
    "deposit_flat": DEPOSIT_FLAT_TABLE,
    "direct_first_deposit": DIRECT_FIRST_DEPOSIT_TABLE,
    "direct_withdrawal": DIRECT_WITHDRAWAL_TABLE,
}

DEFAULT_ROUTES: dict[ShareType, ShareRoute] = {
    ShareType.DEPOSIT_BONUS: ShareRoute("deposit_flat", WalletBucket.BENEFIT),
    ShareType.FIRST_DEPOSIT_BONUS: ShareRoute(
        "direct_first_deposit", WalletBucket.NORMAL
    ),
    ShareType.WITHDRAWAL_BONUS: ShareRoute("mlm10", WalletBucket.WITHDRAWAL),
    ShareType.WITHDRAWAL_REFERRAL_BONUS: ShareRoute(
        "direct_withdrawal", WalletBucket.NORMAL
    ),
    ShareType.GAME_WIN: ShareRoute("mlm10", WalletBucket.WITHDRAWAL),
    ShareType.DAILY_BENEFIT: ShareRoute("mlm30", WalletBucket.WITHDRAWAL),
    ShareType.LEVEL_BASED: ShareRoute("mlm30", WalletBucket.WITHDRAWAL),
}


class LevelTables:
    """
    Percentage tables plus share-type routing.

    Percentages are per-cent values (4 means 4%).
    """

    def __init__(
        self,
        tables: dict[str, dict[int, Decimal]] | None = None,
        routes: dict[ShareType, ShareRoute] | None = None,
    ) -> None:
        self.tables = dict(tables if tables is not None else DEFAULT_TABLES)
        self.routes = dict(routes if routes is not None else DEFAULT_ROUTES)

        for share_type, route in self.routes.items():
            if route.table is not None and route.table not in self.tables:
                raise ValueError(
                    f"Share type {share_type.value} routed to unknown "
                    f"table {route.table}"
                )

    def route(self, share_type: ShareType) -> ShareRoute:
        """Get routing for share type; unrouted types are disabled."""
        return self.routes.get(
            share_type, ShareRoute(None, WalletBucket.WITHDRAWAL)
        )

    def table_for(self, share_type: ShareType) -> dict[int, Decimal]:
        """Get the level table used by share type (empty when disabled)."""
        route = self.route(share_type)
        if route.table is None:
            return {}
        return self.tables[route.table]

    def percentage(self, share_type: ShareType, level: int) -> Decimal:
        """Get percentage for level, zero for levels absent from the table."""
        return self.table_for(share_type).get(level, Decimal("0"))

    def max_level(self, share_type: ShareType) -> int:
        table = self.table_for(share_type)
        return max(table) if table else 0

    def describe(self) -> dict:
        """Serializable view of every table and route."""
        return {
            "tables": {
                name: {
                    "levels": {
                        str(level): str(pct)
                        for level, pct in sorted(table.items())
                    },
                    "total_percent": str(sum(table.values(), Decimal("0"))),
                    "depth": max(table) if table else 0,
                }
                for name, table in self.tables.items()
            },
            "routes": {
                share_type.value: {
                    "table": route.table,
                    "wallet": route.wallet.value,
                }
                for share_type, route in self.routes.items()
            },
        }


def _parse_tables(raw: dict) -> dict[str, dict[int, Decimal]]:
    return {
        name: {int(level): Decimal(str(pct)) for level, pct in levels.items()}
        for name, levels in raw.items()
    }


def _parse_routes(raw: dict) -> dict[ShareType, ShareRoute]:
    return {
        ShareType(share_type): ShareRoute(
            route.get("table"), WalletBucket(route["wallet"])
        )
        for share_type, route in raw.items()
    }


def load_level_tables(path: str | None = None) -> LevelTables:
    """
    Build level tables, applying overrides from a JSON file if given.

    Args:
        path: JSON override file (defaults to settings.level_tables_path)

    Returns:
        LevelTables instance
    """
    if path is None:
        from app.config.settings import settings

        path = settings.level_tables_path

    if not path:
        return LevelTables()

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    tables = {**DEFAULT_TABLES, **_parse_tables(raw.get("tables", {}))}
    routes = {**DEFAULT_ROUTES, **_parse_routes(raw.get("routes", {}))}

    logger.info(
        "Loaded MLM level table overrides",
        extra={"path": path, "tables": sorted(raw.get("tables", {}))},
    )
    return LevelTables(tables=tables, routes=routes)
