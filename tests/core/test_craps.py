"""Tests for the craps table engine."""

from decimal import Decimal

import pytest

from conftest import ScriptedRandom
from core.game import CrapsBetKind, CrapsPhase, CrapsTable, EventType
from core.game.craps import come_out_result, odds_payout, pointed_result
from core.ledger import Wallet
from core.outcome import BetResult


def roll(table, dice, *faces):
    dice.results.extend(faces)
    return table.roll()


class TestResolutionRules:
    @pytest.mark.parametrize("total", [7, 11])
    def test_naturals(self, total):
        assert come_out_result(CrapsBetKind.PASS, total) == BetResult.WIN
        assert come_out_result(CrapsBetKind.DONT_PASS, total) == BetResult.LOSE

    @pytest.mark.parametrize("total", [2, 3])
    def test_craps(self, total):
        assert come_out_result(CrapsBetKind.PASS, total) == BetResult.LOSE
        assert come_out_result(CrapsBetKind.DONT_PASS, total) == BetResult.WIN

    def test_bar_twelve(self):
        assert come_out_result(CrapsBetKind.PASS, 12) == BetResult.LOSE
        assert come_out_result(CrapsBetKind.DONT_COME, 12) == BetResult.PUSH

    @pytest.mark.parametrize("total", [4, 5, 6, 8, 9, 10])
    def test_point_numbers_travel(self, total):
        assert come_out_result(CrapsBetKind.COME, total) is None
        assert come_out_result(CrapsBetKind.DONT_COME, total) is None

    def test_pointed(self):
        assert pointed_result(CrapsBetKind.PASS, 6, 6) == BetResult.WIN
        assert pointed_result(CrapsBetKind.PASS, 6, 7) == BetResult.LOSE
        assert pointed_result(CrapsBetKind.DONT_COME, 6, 7) == BetResult.WIN
        assert pointed_result(CrapsBetKind.DONT_COME, 6, 6) == BetResult.LOSE
        assert pointed_result(CrapsBetKind.COME, 6, 11) is None

    @pytest.mark.parametrize(
        "point, right, wrong",
        [
            (4, Decimal("20"), Decimal("5")),
            (10, Decimal("20"), Decimal("5")),
            (5, Decimal("15"), Decimal("10") * 2 / 3),
            (9, Decimal("15"), Decimal("10") * 2 / 3),
            (6, Decimal("12"), Decimal("10") * 5 / 6),
            (8, Decimal("12"), Decimal("10") * 5 / 6),
        ],
    )
    def test_true_odds(self, point, right, wrong):
        assert odds_payout(CrapsBetKind.PASS, point, Decimal("10")) == right
        assert odds_payout(CrapsBetKind.DONT_PASS, point, Decimal("10")) == wrong


class TestComeOut:
    def test_initial_state(self, craps):
        assert craps.phase == CrapsPhase.COME_OUT
        assert craps.table_point() is None
        assert craps.bets == []

    def test_seven_pays_pass(self, craps, dice, wallet):
        """$10 pass on a come-out 7 credits $20."""
        craps.place_bet("pass", 10)

        outcome = roll(craps, dice, 3, 4)

        assert outcome.total == 7
        assert outcome.resolutions[0].result == BetResult.WIN
        assert outcome.resolutions[0].payout == Decimal("20")
        assert wallet.balance == Decimal("1010")
        assert craps.phase == CrapsPhase.COME_OUT
        assert craps.bets == []

    def test_one_roll_settles_every_bet(self, craps, dice, wallet):
        craps.place_bet("pass", 10)
        craps.place_bet("dont_pass", 10)

        outcome = roll(craps, dice, 5, 6)

        results = {r.kind: r.result for r in outcome.resolutions}
        assert results == {"pass": BetResult.WIN, "dont_pass": BetResult.LOSE}
        assert wallet.balance == Decimal("1000")

    def test_craps_two(self, craps, dice, wallet):
        craps.place_bet("pass", 10)
        craps.place_bet("dont_pass", 10)

        outcome = roll(craps, dice, 1, 1)

        results = {r.kind: r.result for r in outcome.resolutions}
        assert results == {"pass": BetResult.LOSE, "dont_pass": BetResult.WIN}

    def test_twelve_pushes_dont_pass(self, craps, dice, wallet):
        craps.place_bet("dont_pass", 10)

        outcome = roll(craps, dice, 6, 6)

        assert outcome.resolutions[0].result == BetResult.PUSH
        assert wallet.balance == Decimal("1000")

    def test_point_established(self, craps, dice, wallet):
        bet = craps.place_bet("pass", 10)

        outcome = roll(craps, dice, 2, 4)

        assert outcome.resolutions == ()
        assert craps.phase == CrapsPhase.POINT
        assert craps.table_point() == 6
        assert bet.point == 6
        assert wallet.balance == Decimal("990")
        history = [e.event_type for e in craps.events.history]
        assert EventType.POINT_ESTABLISHED in history
        assert EventType.BET_TRAVELED in history


class TestPoint:
    def test_seven_out_loses_pass_and_odds(self, craps, dice, wallet):
        """Point 6 then 7: pass and its odds both lose."""
        bet = craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)
        assert craps.add_odds(bet.bet_id, 20)

        outcome = roll(craps, dice, 3, 4)

        assert outcome.resolutions[0].result == BetResult.LOSE
        assert outcome.resolutions[0].stake == Decimal("30")
        assert outcome.resolutions[0].payout == 0
        assert wallet.balance == Decimal("970")
        assert craps.phase == CrapsPhase.COME_OUT
        assert craps.table_point() is None
        assert EventType.SEVEN_OUT in [e.event_type for e in craps.events.history]

    def test_point_made_pays_odds(self, craps, dice, wallet):
        bet = craps.place_bet("pass", 10)
        roll(craps, dice, 1, 3)
        craps.add_odds(bet.bet_id, 30)

        outcome = roll(craps, dice, 2, 2)

        # 20 line + 30 odds stake + 60 at 2:1
        assert outcome.resolutions[0].payout == Decimal("110")
        assert wallet.balance == Decimal("1070")
        assert craps.phase == CrapsPhase.COME_OUT

    def test_dont_pass_odds_on_seven(self, craps, dice, wallet):
        bet = craps.place_bet("dont_pass", 10)
        roll(craps, dice, 2, 4)
        craps.add_odds(bet.bet_id, 30)

        roll(craps, dice, 6, 1)

        # 20 line + 30 odds stake + 25 at 5:6
        assert wallet.balance == Decimal("1035")

    def test_odds_payout_rounded_half_up(self, craps, dice, wallet):
        bet = craps.place_bet("dont_pass", 10)
        roll(craps, dice, 2, 3)
        craps.add_odds(bet.bet_id, 10)

        outcome = roll(craps, dice, 4, 3)

        # 20 + 10 + 6.666...
        assert outcome.resolutions[0].payout == Decimal("36.67")
        assert wallet.balance == Decimal("1016.67")

    def test_other_numbers_do_not_settle(self, craps, dice, wallet):
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)

        outcome = roll(craps, dice, 5, 6)

        assert outcome.resolutions == ()
        assert craps.phase == CrapsPhase.POINT
        assert len(craps.bets) == 1

    def test_odds_capped_at_three_times(self, craps, dice, wallet):
        bet = craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)

        assert craps.add_odds(bet.bet_id, 31) is None
        assert craps.events.last.event_type == EventType.INVALID_ACTION
        assert craps.add_odds(bet.bet_id, 20)
        assert craps.add_odds(bet.bet_id, 11) is None
        assert craps.add_odds(bet.bet_id, 10)
        assert bet.odds == Decimal("30")
        assert wallet.balance == Decimal("960")

    def test_odds_need_a_point(self, craps, wallet):
        bet = craps.place_bet("pass", 10)

        assert craps.add_odds(bet.bet_id, 10) is None
        assert craps.add_odds(999, 10) is None
        assert wallet.balance == Decimal("990")

    def test_odds_need_funds(self, dice):
        wallet = Wallet(Decimal("20"))
        table = CrapsTable(wallet, rng=dice)
        bet = table.place_bet("pass", 10)
        roll(table, dice, 2, 4)

        assert table.add_odds(bet.bet_id, 20) is None
        assert table.events.last.event_type == EventType.INSUFFICIENT_FUNDS
        assert bet.odds == 0


class TestBetPlacement:
    def test_line_bets_only_on_come_out(self, craps, dice):
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)

        assert craps.place_bet("pass", 10) is None
        assert craps.place_bet("dont_pass", 10) is None
        assert craps.events.last.event_type == EventType.INVALID_ACTION

    def test_come_bets_only_with_a_point(self, craps, wallet):
        assert craps.place_bet("come", 10) is None
        assert craps.place_bet("dont_come", 10) is None
        assert wallet.balance == Decimal("1000")

    def test_unknown_kind_rejected(self, craps):
        assert craps.place_bet("field", 10) is None

    def test_chips_merge_into_unpointed_bet(self, craps, wallet):
        first = craps.place_bet("pass", 10)
        second = craps.place_bet(CrapsBetKind.PASS, 5)

        assert first is second
        assert first.amount == Decimal("15")
        assert len(craps.bets) == 1
        assert wallet.balance == Decimal("985")

    def test_merged_bet_respects_table_maximum(self, craps):
        craps.place_bet("pass", 1000)

        assert craps.place_bet("pass", 5) is None
        assert craps.bets[0].amount == Decimal("1000")

    def test_roll_without_bets_rejected(self, craps):
        assert craps.roll() is None
        assert craps.events.last.event_type == EventType.INVALID_ACTION
        assert list(craps.history) == []


class TestComeBets:
    def test_come_bet_travels_and_wins(self, craps, dice, wallet):
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)
        come = craps.place_bet("come", 10)

        roll(craps, dice, 4, 4)
        assert come.point == 8
        assert craps.table_point() == 6

        outcome = roll(craps, dice, 5, 3)

        assert [r.kind for r in outcome.resolutions] == ["come"]
        assert outcome.resolutions[0].payout == Decimal("20")
        assert craps.table_point() == 6
        assert wallet.balance == Decimal("1000")

    def test_come_bet_wins_on_eleven(self, craps, dice, wallet):
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)
        craps.place_bet("come", 10)

        outcome = roll(craps, dice, 5, 6)

        assert outcome.resolutions[0].kind == "come"
        assert outcome.resolutions[0].result == BetResult.WIN

    def test_pointed_come_bet_works_on_come_out(self, craps, dice, wallet):
        """A come bet on 8 stays up after the point is made and loses to a come-out 7."""
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)
        come = craps.place_bet("come", 10)
        roll(craps, dice, 4, 4)

        outcome = roll(craps, dice, 3, 3)
        assert [r.kind for r in outcome.resolutions] == ["pass"]
        assert craps.phase == CrapsPhase.COME_OUT
        assert craps.bets == [come]

        outcome = roll(craps, dice, 3, 4)

        assert [r.result for r in outcome.resolutions] == [BetResult.LOSE]
        assert craps.bets == []
        assert wallet.balance == Decimal("1000")

    def test_dont_come_with_odds(self, craps, dice, wallet):
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)
        dont = craps.place_bet("dont_come", 10)
        roll(craps, dice, 2, 2)
        assert dont.point == 4
        craps.add_odds(dont.bet_id, 30)

        outcome = roll(craps, dice, 1, 6)

        payouts = {r.kind: r.payout for r in outcome.resolutions}
        # 20 line + 30 odds stake + 15 at 1:2
        assert payouts == {"pass": Decimal("0"), "dont_come": Decimal("65")}


class TestHistory:
    def test_keeps_last_ten_totals(self, craps, dice):
        craps.place_bet("pass", 10)
        for _ in range(12):
            roll(craps, dice, 5, 6)
            craps.place_bet("pass", 10)

        assert len(craps.history) == 10
        assert set(craps.history) == {11}

    def test_most_recent_first(self, craps, dice):
        craps.place_bet("pass", 10)
        roll(craps, dice, 2, 4)
        roll(craps, dice, 4, 5)

        assert list(craps.history) == [9, 6]

    def test_settled_bets_are_never_settled_again(self, craps, dice):
        craps.place_bet("pass", 10)
        outcome = roll(craps, dice, 3, 4)
        settled = outcome.resolutions[0]

        with pytest.raises(RuntimeError):
            craps._settle(settled.bet_id, "pass", Decimal("10"), BetResult.WIN, Decimal("20"))


class TestScriptedRandom:
    def test_fallback_when_queue_empty(self):
        rng = ScriptedRandom([3])
        assert rng.randint(1, 6) == 3
        assert 1 <= rng.randint(1, 6) <= 6
