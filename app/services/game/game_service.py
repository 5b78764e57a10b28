"""
Game service.

Room creation, joins and settlement. A join debits the entry fee split,
records the player and, when the join fills the room, settles it in the
same unit of work. The room row is locked and versioned, so a room is
settled exactly once even if two last joiners race.
"""

import random
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    COLOR_OPTIONS,
    MIN_ROOM_OPTIONS,
    NUMBER_OPTIONS,
)
from app.config.mlm_levels import LevelTables
from app.config.settings import settings
from app.models.enums import (
    EntryKind,
    GameType,
    PayoutShape,
    RoomStatus,
    ShareType,
    WalletBucket,
)
from app.models.game_player import GamePlayer
from app.models.game_room import GameRoom
from app.repositories.game_repository import GamePlayerRepository, GameRoomRepository
from app.services.base_service import BaseService
from app.services.game.resolver import compute_payout, resolve_winning_option
from app.services.ledger.ledger_service import LedgerService, parse_amount, parse_wallet
from app.services.referral.distribution_engine import ProfitDistributionEngine
from app.utils.datetime_utils import ensure_aware, utc_now
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import (
    ConcurrencyConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
    is_retryable,
)
from app.utils.money import fraction_of


OPTION_SETS: dict[GameType, tuple[str, ...]] = {
    GameType.COLOR: COLOR_OPTIONS,
    GameType.NUMBER: NUMBER_OPTIONS,
}


@dataclass
class WinnerPayout:
    """Winnings of one player."""

    account_id: int
    player_id: int
    prize: Decimal
    returned: Decimal


@dataclass
class JoinResult:
    """Outcome of a join."""

    room_code: str
    player_id: int
    current_players: int
    max_players: int
    completed: bool = False
    winning_option: str | None = None
    winners: list[WinnerPayout] = field(default_factory=list)
    balances: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class SettlementResult:
    """Outcome of a settlement."""

    room_code: str
    winning_option: str
    winners: list[WinnerPayout] = field(default_factory=list)


class GameService(BaseService):
    """Game rooms and settlement."""

    def __init__(
        self,
        session: AsyncSession,
        rng: random.Random | None = None,
        tables: LevelTables | None = None,
    ) -> None:
        """
        Initialize game service.

        Args:
            session: Async database session
            rng: Random source for the zero-count draw
            tables: Level tables for game-win distribution
        """
        super().__init__(session)
        self.rng = rng
        self.room_repo = GameRoomRepository(session)
        self.player_repo = GamePlayerRepository(session)
        self.ledger = LedgerService(session)
        self.distribution = ProfitDistributionEngine(session, tables)

    # Room management

    def _default_room_config(self, game_type: GameType) -> dict:
        if game_type == GameType.COLOR:
            return {
                "entry_fee": settings.color_entry_fee,
                "max_players": settings.color_max_players,
                "fee_split": {
                    WalletBucket.NORMAL.value: "1",
                    WalletBucket.BENEFIT.value: str(
                        settings.color_benefit_fee_multiplier
                    ),
                },
                "payout_shape": PayoutShape.FIXED,
                "payout_amount": settings.color_winning_amount,
                "payout_multiplier": Decimal("1"),
                "payout_wallet": WalletBucket.NORMAL,
                "return_wallet": WalletBucket.NORMAL,
            }
        return {
            "entry_fee": Decimal("0"),
            "max_players": settings.number_max_players,
            "fee_split": {WalletBucket.GAME.value: "1"},
            "payout_shape": PayoutShape.RETURN_PLUS_DELTA,
            "payout_amount": Decimal("0"),
            "payout_multiplier": settings.number_payout_multiplier,
            "payout_wallet": WalletBucket.WITHDRAWAL,
            "return_wallet": WalletBucket.NORMAL,
        }

    @with_auto_commit
    async def create_room(
        self,
        game_type: GameType | str,
        room_code: str,
        options: list[str] | None = None,
        **overrides,
    ) -> GameRoom:
        """
        Create a waiting room.

        Args:
            game_type: Color or number
            room_code: Unique room code
            options: Subset of the variant's options (defaults to all)
            **overrides: entry_fee, max_players, fee_split, payout_shape,
                payout_amount, payout_multiplier, payout_wallet, return_wallet

        Returns:
            Created room

        Raises:
            ValidationError: Bad options, duplicate code or bad payout config
        """
        try:
            game_type = GameType(game_type)
        except ValueError as e:
            raise ValidationError("Unknown game type", game_type=str(game_type)) from e

        allowed = OPTION_SETS[game_type]
        chosen = list(options) if options else list(allowed)
        unknown = [option for option in chosen if option not in allowed]
        if unknown:
            raise ValidationError(
                "Unknown room options", options=unknown, allowed=list(allowed)
            )
        # Keep the canonical order, it is the tie-break order
        ordered = [option for option in allowed if option in chosen]
        if len(ordered) < MIN_ROOM_OPTIONS:
            raise ValidationError(
                f"Room needs at least {MIN_ROOM_OPTIONS} options", options=ordered
            )

        if await self.room_repo.get_by_code(room_code) is not None:
            raise ValidationError("Room code already exists", room_code=room_code)

        config = {**self._default_room_config(game_type), **overrides}
        fee_split = {
            parse_wallet(bucket).value: str(Decimal(str(multiplier)))
            for bucket, multiplier in config["fee_split"].items()
        }
        if not fee_split or any(Decimal(m) < 0 for m in fee_split.values()):
            raise ValidationError("Fee split must be non-empty and non-negative")
        if config["max_players"] < 2:
            raise ValidationError("Room needs at least 2 players")

        room = GameRoom(
            room_code=room_code,
            game_type=game_type.value,
            options=ordered,
            option_counts={option: 0 for option in ordered},
            entry_fee=config["entry_fee"],
            fee_split=fee_split,
            payout_shape=PayoutShape(config["payout_shape"]).value,
            payout_amount=config["payout_amount"],
            payout_multiplier=config["payout_multiplier"],
            payout_wallet=parse_wallet(config["payout_wallet"]).value,
            return_wallet=parse_wallet(config["return_wallet"]).value,
            max_players=config["max_players"],
            current_players=0,
            status=RoomStatus.WAITING.value,
        )
        self.session.add(room)
        await self.session.flush()

        self.logger.info(
            "Game room created",
            extra={
                "room_code": room_code,
                "game_type": game_type.value,
                "options": ordered,
                "max_players": room.max_players,
            },
        )
        return room

    async def _get_room(self, room_code: str, for_update: bool = False) -> GameRoom:
        room = await self.room_repo.get_by_code(room_code, for_update=for_update)
        if room is None:
            raise NotFoundError("Room not found", room_code=room_code)
        return room

    # Joins

    async def join_room(
        self,
        account_id: int,
        room_code: str,
        option: str,
        entry_amount: Decimal | None = None,
    ) -> JoinResult:
        """
        Join a room, settling it if this join fills it.

        A concurrent-modification conflict is retried once after rollback.

        Args:
            account_id: Joining account
            room_code: Room code
            option: Chosen option
            entry_amount: Stake for rooms without a fixed entry fee

        Returns:
            JoinResult

        Raises:
            ValidationError: Room not waiting, full, bad option or amount
            InsufficientBalanceError: A fee bucket is too low
            NotFoundError: Room or account missing
            ConcurrencyConflictError: Conflict persisted after one retry
        """
        try:
            return await self._join_once(account_id, room_code, option, entry_amount)
        except Exception as e:
            if not is_retryable(e):
                raise
            self.logger.warning(
                "Room join conflict, retrying",
                extra={"room_code": room_code, "account_id": account_id},
            )

        try:
            return await self._join_once(account_id, room_code, option, entry_amount)
        except Exception as e:
            if not is_retryable(e):
                raise
            raise ConcurrencyConflictError(
                "Room was modified concurrently",
                room_code=room_code,
                account_id=account_id,
            ) from e

    @with_auto_commit
    async def _join_once(
        self,
        account_id: int,
        room_code: str,
        option: str,
        entry_amount: Decimal | None,
    ) -> JoinResult:
        room = await self._get_room(room_code, for_update=True)

        if room.status != RoomStatus.WAITING.value:
            raise ValidationError(
                "Room is not accepting players", room_code=room_code, status=room.status
            )
        if room.is_full:
            raise ValidationError("Room is full", room_code=room_code)
        if option not in room.options:
            raise ValidationError(
                "Invalid option", room_code=room_code, option=option,
                allowed=list(room.options),
            )

        if room.entry_fee > 0:
            stake = room.entry_fee
        elif entry_amount is None:
            raise ValidationError("Entry amount is required", room_code=room_code)
        else:
            stake = parse_amount(entry_amount)

        account = await self.ledger.lock_account(account_id)

        # Check every bucket before debiting any
        charges = [
            (parse_wallet(bucket), fraction_of(stake, Decimal(multiplier)))
            for bucket, multiplier in room.fee_split.items()
        ]
        charges = [(bucket, amount) for bucket, amount in charges if amount > 0]
        for bucket, amount in charges:
            if account.balance_of(bucket) < amount:
                raise InsufficientBalanceError(
                    f"Insufficient {bucket.value} balance to join",
                    account_id=account_id,
                    wallet=bucket.value,
                    balance=str(account.balance_of(bucket)),
                    amount=str(amount),
                )

        for bucket, amount in charges:
            await self.ledger.debit(
                account, bucket, amount, EntryKind.GAME_ENTRY,
                f"Entry to room {room_code} ({option})",
            )

        player = GamePlayer(
            room_id=room.id,
            account_id=account_id,
            option=option,
            entry_amount=stake,
            paid={bucket.value: str(amount) for bucket, amount in charges},
        )
        self.session.add(player)

        room.current_players += 1
        counts = dict(room.option_counts)
        counts[option] = counts.get(option, 0) + 1
        room.option_counts = counts
        await self.session.flush()

        result = JoinResult(
            room_code=room_code,
            player_id=player.id,
            current_players=room.current_players,
            max_players=room.max_players,
        )

        if room.is_full:
            settlement = await self._settle(room)
            result.completed = True
            result.winning_option = settlement.winning_option
            result.winners = settlement.winners

        result.balances = account.balances()

        self.logger.info(
            "Player joined room",
            extra={
                "room_code": room_code,
                "account_id": account_id,
                "option": option,
                "stake": str(stake),
                "players": f"{room.current_players}/{room.max_players}",
                "completed": result.completed,
            },
        )
        return result

    # Settlement

    async def _settle(self, room: GameRoom) -> SettlementResult:
        """Resolve the winner, pay winners and mark the room completed."""
        if room.status != RoomStatus.WAITING.value:
            raise ConcurrencyConflictError(
                "Room already settled", room_code=room.room_code
            )

        winning_option = resolve_winning_option(
            room.options, room.option_counts, self.rng
        )
        settlement = SettlementResult(
            room_code=room.room_code, winning_option=winning_option
        )

        players = await self.player_repo.get_by_room(room.id)
        for player in players:
            if player.option != winning_option:
                continue

            credits = compute_payout(
                room.payout_shape,
                player.entry_amount,
                room.payout_amount,
                room.payout_multiplier,
                room.payout_wallet,
                room.return_wallet,
            )
            prize = Decimal("0")
            returned = Decimal("0")
            for credit in credits:
                await self.ledger.credit(
                    player.account_id, credit.wallet, credit.amount, credit.kind,
                    f"Room {room.room_code} won with {winning_option}",
                )
                if credit.kind == EntryKind.GAME_WIN:
                    prize += credit.amount
                else:
                    returned += credit.amount

            player.has_won = True
            player.amount_won = prize
            settlement.winners.append(
                WinnerPayout(player.account_id, player.id, prize, returned)
            )

            if prize > 0:
                await self.distribution.distribute(
                    player.account_id, prize, ShareType.GAME_WIN,
                    f"game win in room {room.room_code}",
                )

        room.status = RoomStatus.COMPLETED.value
        room.winning_option = winning_option
        room.completed_at = utc_now()
        await self.session.flush()

        self.logger.info(
            "Room settled",
            extra={
                "room_code": room.room_code,
                "winning_option": winning_option,
                "counts": dict(room.option_counts),
                "winners": len(settlement.winners),
            },
        )
        return settlement

    @with_auto_commit
    async def close_room(self, room_code: str) -> SettlementResult:
        """
        Force-settle a room with the players it has.

        Raises:
            NotFoundError: Room missing
            ValidationError: Room not waiting or empty
        """
        room = await self._get_room(room_code, for_update=True)
        if room.status != RoomStatus.WAITING.value:
            raise ValidationError(
                "Room is not open", room_code=room_code, status=room.status
            )
        if room.current_players == 0:
            raise ValidationError("Room has no players", room_code=room_code)

        return await self._settle(room)

    # Queries

    async def get_room_stats(self, room_code: str) -> dict:
        """Current state of a room."""
        room = await self._get_room(room_code)
        return {
            "room_code": room.room_code,
            "game_type": room.game_type,
            "status": room.status,
            "current_players": room.current_players,
            "max_players": room.max_players,
            "option_counts": dict(room.option_counts),
            "entry_fee": room.entry_fee,
            "winning_option": room.winning_option,
        }

    async def get_history(self, game_type: GameType | str, limit: int = 10) -> list[dict]:
        """Recently completed rooms of a game type."""
        rooms = await self.room_repo.get_recent_completed(GameType(game_type).value, limit)
        return [
            {
                "room_code": room.room_code,
                "winning_option": room.winning_option,
                "option_counts": dict(room.option_counts),
                "completed_at": (
                    ensure_aware(room.completed_at) if room.completed_at else None
                ),
            }
            for room in rooms
        ]
