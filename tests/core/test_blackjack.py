"""Tests for the blackjack round engine."""

from decimal import Decimal
from random import Random

import pytest

from conftest import cards, stack_shoe
from core.game import BlackjackPhase, BlackjackRound, EventType
from core.ledger import Wallet
from core.outcome import BetResult
from core.rules import BlackjackRules


def event_types(table):
    return [event.event_type for event in table.events.history]


class TestDeal:
    """Tests for dealing a round."""

    def test_initial_state(self, blackjack):
        assert blackjack.phase == BlackjackPhase.BETTING
        assert blackjack.active_hands() == []
        assert blackjack.active_hand_index is None
        assert blackjack.shoe_remaining() == 312

    def test_deal_order_and_hole_card(self, blackjack, wallet):
        """Player, dealer, player, dealer face down."""
        stack_shoe(blackjack, "10S", "9D", "6H", "8C")

        assert blackjack.deal(10)

        hand = blackjack.active_hands()[0]
        assert hand.cards == cards("10S", "6H")
        assert blackjack.dealer_hand.cards == cards("9D", "8C")
        assert not blackjack.dealer_hand.cards[1].face_up
        assert blackjack.phase == BlackjackPhase.PLAYING
        assert blackjack.active_hand_index == 0
        assert wallet.balance == Decimal("990")

    def test_blackjack_pays_three_to_two(self, blackjack, wallet):
        """[A,K] against [7,9] pays 2.5x the bet."""
        stack_shoe(blackjack, "AS", "7D", "KH", "9C")

        assert blackjack.deal(10)

        assert blackjack.phase == BlackjackPhase.RESOLVED
        outcome = blackjack.last_outcome
        assert outcome.resolutions[0].result == BetResult.BLACKJACK
        assert outcome.resolutions[0].payout == Decimal("25")
        assert wallet.balance == Decimal("1015")
        assert blackjack.dealer_hand.cards[1].face_up

    def test_blackjack_payout_rounds_half_up(self, blackjack, wallet):
        stack_shoe(blackjack, "AS", "7D", "KH", "9C")

        blackjack.deal(Decimal("5.01"))

        # 5.01 * 2.5 = 12.525
        assert blackjack.last_outcome.total_payout == Decimal("12.53")
        assert wallet.balance == Decimal("1007.52")

    def test_dealer_blackjack_loses_immediately(self, blackjack, wallet):
        stack_shoe(blackjack, "10S", "AD", "9H", "KC")

        assert blackjack.deal(10)

        assert blackjack.phase == BlackjackPhase.RESOLVED
        assert blackjack.last_outcome.resolutions[0].result == BetResult.LOSE
        assert EventType.DEALER_BLACKJACK in event_types(blackjack)
        assert wallet.balance == Decimal("990")

    def test_both_blackjack_push(self, blackjack, wallet):
        stack_shoe(blackjack, "AS", "AD", "KH", "QC")

        blackjack.deal(10)

        assert blackjack.last_outcome.resolutions[0].result == BetResult.PUSH
        assert wallet.balance == Decimal("1000")

    def test_bet_below_minimum_rejected(self, blackjack, wallet):
        assert not blackjack.deal(1)
        assert blackjack.events.last.event_type == EventType.INVALID_ACTION
        assert blackjack.phase == BlackjackPhase.BETTING
        assert wallet.balance == Decimal("1000")

    def test_fractional_cent_bet_rejected(self, blackjack):
        assert not blackjack.deal(Decimal("10.005"))
        assert blackjack.events.last.event_type == EventType.INVALID_ACTION

    def test_bet_over_balance_rejected(self, rng):
        wallet = Wallet(Decimal("50"))
        table = BlackjackRound(wallet, rng=rng)

        assert not table.deal(100)

        event = table.events.last
        assert event.event_type == EventType.INSUFFICIENT_FUNDS
        assert event.data == {"required": "100.00", "available": "50.00"}
        assert table.phase == BlackjackPhase.BETTING
        assert table.shoe_remaining() == 312

    def test_cannot_deal_mid_round(self, blackjack):
        stack_shoe(blackjack, "10S", "9D", "6H", "8C")
        blackjack.deal(10)

        assert not blackjack.deal(10)
        assert blackjack.events.last.event_type == EventType.INVALID_ACTION

    def test_reshuffles_between_rounds(self, blackjack):
        """A low shoe is reshuffled before the next deal."""
        del blackjack.shoe._cards[40:]
        shuffles = event_types(blackjack).count(EventType.SHOE_SHUFFLED)

        blackjack.deal(10)

        assert event_types(blackjack).count(EventType.SHOE_SHUFFLED) == shuffles + 1
        assert blackjack.shoe_remaining() in range(300, 309)


class TestPlayerActions:
    """Tests for hit, stand and double."""

    def test_hit(self, blackjack):
        stack_shoe(blackjack, "10S", "9D", "2H", "8C", "5S")
        blackjack.deal(10)

        assert blackjack.hit()

        assert blackjack.active_hands()[0].value == 17
        assert blackjack.phase == BlackjackPhase.PLAYING

    def test_hit_to_bust_ends_round_without_dealer_draw(self, blackjack, wallet):
        stack_shoe(blackjack, "10S", "9D", "6H", "5C", "KD")
        blackjack.deal(10)

        assert blackjack.hit()

        assert blackjack.phase == BlackjackPhase.RESOLVED
        assert len(blackjack.dealer_hand.cards) == 2
        assert blackjack.dealer_hand.cards[1].face_up
        assert blackjack.last_outcome.resolutions[0].result == BetResult.BUST
        assert wallet.balance == Decimal("990")

    def test_hit_to_21_stands_automatically(self, blackjack):
        stack_shoe(blackjack, "10S", "9D", "6H", "8C", "5D")
        blackjack.deal(10)

        blackjack.hit()

        assert blackjack.phase == BlackjackPhase.RESOLVED
        assert blackjack.last_outcome.resolutions[0].result == BetResult.WIN

    def test_stand_and_dealer_plays(self, blackjack, wallet):
        stack_shoe(blackjack, "10S", "9D", "9H", "8C")
        blackjack.deal(10)

        assert blackjack.stand()

        assert blackjack.phase == BlackjackPhase.RESOLVED
        assert blackjack.last_outcome.resolutions[0].result == BetResult.WIN
        assert blackjack.last_outcome.dealer_total == 17
        assert wallet.balance == Decimal("1010")

    def test_dealer_hits_soft_17(self, blackjack):
        stack_shoe(blackjack, "10S", "AD", "8H", "6C", "3D")
        blackjack.deal(10)

        blackjack.stand()

        assert blackjack.dealer_hand.cards == cards("AD", "6C", "3D")
        assert blackjack.last_outcome.resolutions[0].result == BetResult.LOSE

    def test_dealer_stands_on_hard_17(self, blackjack):
        stack_shoe(blackjack, "10S", "10D", "8H", "7C", "4D")
        blackjack.deal(10)

        blackjack.stand()

        assert len(blackjack.dealer_hand.cards) == 2
        assert blackjack.last_outcome.resolutions[0].result == BetResult.WIN

    def test_dealer_bust(self, blackjack, wallet):
        stack_shoe(blackjack, "10S", "10D", "2H", "6C", "QD")
        blackjack.deal(10)

        blackjack.stand()

        assert EventType.DEALER_BUSTS in event_types(blackjack)
        assert blackjack.last_outcome.resolutions[0].result == BetResult.WIN
        assert wallet.balance == Decimal("1010")

    def test_double_down(self, blackjack, wallet):
        stack_shoe(blackjack, "5S", "9D", "6H", "8C", "10D")
        blackjack.deal(10)

        assert blackjack.double_down()

        hand = blackjack.active_hands()[0]
        assert hand.is_doubled
        assert hand.bet == Decimal("20")
        assert len(hand.cards) == 3
        assert blackjack.last_outcome.resolutions[0].payout == Decimal("40")
        assert wallet.balance == Decimal("1020")

    def test_double_needs_funds(self, rng):
        wallet = Wallet(Decimal("15"))
        table = BlackjackRound(wallet, rng=rng)
        stack_shoe(table, "5S", "9D", "6H", "8C")
        table.deal(10)

        assert not table.can_double
        assert not table.double_down()

        assert table.events.last.event_type == EventType.INSUFFICIENT_FUNDS
        assert wallet.balance == Decimal("5")
        assert table.active_hands()[0].bet == Decimal("10")
        assert len(table.active_hands()[0].cards) == 2

    def test_double_only_on_two_cards(self, blackjack):
        stack_shoe(blackjack, "2S", "9D", "3H", "8C", "4D")
        blackjack.deal(10)
        blackjack.hit()

        assert not blackjack.double_down()
        assert blackjack.events.last.event_type == EventType.INVALID_ACTION

    def test_actions_rejected_outside_play(self, blackjack):
        for action in (blackjack.hit, blackjack.stand, blackjack.double_down, blackjack.split):
            assert not action()
            assert blackjack.events.last.event_type == EventType.INVALID_ACTION
        assert blackjack.phase == BlackjackPhase.BETTING

    def test_action_on_inactive_hand_rejected(self, blackjack):
        stack_shoe(blackjack, "10S", "9D", "6H", "8C")
        blackjack.deal(10)

        assert not blackjack.hit(hand_index=3)
        assert len(blackjack.active_hands()[0].cards) == 2


class TestSplit:
    """Tests for splitting."""

    def test_split_tens(self, blackjack, wallet):
        """[10,10] splits; each hand draws one card and play moves left to right."""
        stack_shoe(blackjack, "10S", "10D", "10H", "8C", "AS", "5H")
        blackjack.deal(10)

        assert blackjack.can_split
        assert blackjack.split()

        first, second = blackjack.active_hands()
        assert first.cards == cards("10S", "AS")
        assert second.cards == cards("10H", "5H")
        assert first.is_done  # reached 21
        assert blackjack.active_hand_index == 1
        assert wallet.balance == Decimal("980")

        blackjack.stand()

        results = [r.result for r in blackjack.last_outcome.resolutions]
        assert results == [BetResult.WIN, BetResult.LOSE]
        # 21 on a split hand pays even money, not 3:2
        assert blackjack.last_outcome.resolutions[0].payout == Decimal("20")
        assert wallet.balance == Decimal("1000")

    def test_split_mixed_ten_values(self, blackjack):
        """[10,K] is a pair by value."""
        stack_shoe(blackjack, "10S", "9D", "KH", "8C", "2S", "3H")
        blackjack.deal(10)

        assert blackjack.can_split
        assert blackjack.split()
        assert [len(h.cards) for h in blackjack.active_hands()] == [2, 2]

    def test_split_non_pair_rejected(self, blackjack, wallet):
        stack_shoe(blackjack, "9S", "9D", "10H", "8C")
        blackjack.deal(10)

        assert not blackjack.can_split
        assert not blackjack.split()
        assert blackjack.events.last.event_type == EventType.INVALID_ACTION
        assert len(blackjack.active_hands()) == 1
        assert wallet.balance == Decimal("990")

    def test_split_aces_get_one_card(self, blackjack, wallet):
        stack_shoe(blackjack, "AS", "9D", "AH", "8C", "KD", "5C")
        blackjack.deal(10)

        blackjack.split()

        assert blackjack.phase == BlackjackPhase.RESOLVED
        first, second = blackjack.active_hands()
        assert first.value == 21 and not first.is_blackjack
        assert second.value == 16
        results = [r.result for r in blackjack.last_outcome.resolutions]
        assert results == [BetResult.WIN, BetResult.LOSE]
        assert wallet.balance == Decimal("1000")

    def test_new_hand_seated_after_source(self, blackjack):
        """Resplitting the first hand seats its new hand before the older split hand."""
        stack_shoe(blackjack, "8S", "10D", "8H", "9C", "8D", "3C", "5S", "6S")
        blackjack.deal(10)

        blackjack.split()  # hand 0: 8S 8D, hand 1: 8H 3C
        assert blackjack.hand_order == [0, 1]
        blackjack.split()  # hand 0: 8S 5S, hand 2: 8D 6S

        assert blackjack.hand_order == [0, 2, 1]
        assert blackjack.hand(2).cards == cards("8D", "6S")
        assert blackjack.active_hand_index == 0

    def test_split_limit(self, rng):
        table = BlackjackRound(Wallet(Decimal("1000")), rules=BlackjackRules(max_hands=2), rng=rng)
        stack_shoe(table, "8S", "10D", "8H", "9C", "8D", "3C")
        table.deal(10)
        table.split()

        assert not table.can_split
        assert not table.split()
        assert len(table.active_hands()) == 2

    def test_split_needs_funds(self, rng):
        wallet = Wallet(Decimal("10"))
        table = BlackjackRound(wallet, rng=rng)
        stack_shoe(table, "8S", "10D", "8H", "9C")
        table.deal(10)

        assert not table.split()
        assert table.events.last.event_type == EventType.INSUFFICIENT_FUNDS
        assert len(table.active_hands()) == 1


class TestCountAndShoe:
    def test_hole_card_counted_on_reveal(self, blackjack):
        stack_shoe(blackjack, "2S", "3D", "4H", "KC", "5S")
        blackjack.deal(10)

        assert blackjack.running_count == 3  # hole card not seen yet

        blackjack.stand()  # reveal K (-1), dealer draws 5 (+1)

        assert blackjack.running_count == 3
        assert blackjack.dealer_hand.value == 18

    def test_true_count(self, blackjack):
        stack_shoe(blackjack, "2S", "3D", "4H", "KC")
        blackjack.deal(10)

        assert blackjack.true_count == round(3 / (308 / 52), 1)

    def test_shoe_exhausted_mid_round_reshuffles(self, rng):
        table = BlackjackRound(
            Wallet(Decimal("1000")),
            rules=BlackjackRules(num_decks=1, reshuffle_threshold=0),
            rng=rng,
        )
        table.shoe._cards = list(reversed(cards("10S", "9D", "2H", "8C")))
        table.deal(10)

        assert table.hit()

        assert EventType.SHOE_SHUFFLED in event_types(table)[1:]
        assert len(table.active_hands()[0].cards) == 3


class TestMoneyConservation:
    @pytest.mark.parametrize("seed", range(10))
    def test_balance_matches_debits_and_credits(self, seed):
        """Over many rounds the balance is start - stakes + payouts, to the cent."""
        wallet = Wallet(Decimal("1000"))
        table = BlackjackRound(wallet, rng=Random(seed))
        player = Random(seed + 100)
        staked = Decimal("0")
        paid = Decimal("0")

        for _ in range(40):
            bet = Decimal(player.randint(500, 2500)) / 100
            if not table.deal(bet):
                break
            while table.phase == BlackjackPhase.PLAYING:
                if table.can_split and player.random() < 0.5:
                    table.split()
                elif table.can_double and player.random() < 0.2:
                    table.double_down()
                elif table.hand(table.active_hand_index).value < 17:
                    table.hit()
                else:
                    table.stand()
            outcome = table.last_outcome
            staked += outcome.total_staked
            paid += outcome.total_payout

        assert wallet.balance == Decimal("1000") - staked + paid
        assert wallet.balance == Decimal("1000") - wallet.total_debited + wallet.total_credited

    def test_bet_settles_once(self, blackjack):
        stack_shoe(blackjack, "AS", "7D", "KH", "9C")
        blackjack.deal(10)
        resolution = blackjack.last_outcome.resolutions[0]

        with pytest.raises(RuntimeError):
            blackjack._settle(resolution.bet_id, "hand-0", Decimal("10"), BetResult.WIN, Decimal("20"))
