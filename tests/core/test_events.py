"""Tests for the event emitter."""

from core.game.events import EventEmitter, EventType, GameEvent


class TestEventEmitter:
    def test_typed_handlers_run_before_catch_all(self):
        emitter = EventEmitter()
        seen = []
        emitter.subscribe(lambda e: seen.append(("all", e.event_type)))
        emitter.subscribe(lambda e: seen.append(("typed", e.event_type)), EventType.DICE_ROLLED)

        emitter.emit_new(EventType.DICE_ROLLED, dice=(3, 4))
        emitter.emit_new(EventType.WHEEL_SPUN, number=0)

        assert seen == [
            ("typed", EventType.DICE_ROLLED),
            ("all", EventType.DICE_ROLLED),
            ("all", EventType.WHEEL_SPUN),
        ]

    def test_unsubscribe(self):
        emitter = EventEmitter()
        seen = []
        emitter.subscribe(seen.append, EventType.BET_PLACED)
        emitter.unsubscribe(seen.append, EventType.BET_PLACED)
        emitter.unsubscribe(seen.append)

        emitter.emit_new(EventType.BET_PLACED, amount="10.00")

        assert seen == []

    def test_history_is_bounded(self):
        emitter = EventEmitter(history_limit=3)
        for number in range(5):
            emitter.emit_new(EventType.WHEEL_SPUN, number=number)

        assert [e.data["number"] for e in emitter.history] == [2, 3, 4]
        assert emitter.last.data == {"number": 4}

    def test_clear_history(self):
        emitter = EventEmitter()
        emitter.emit(GameEvent(EventType.ROUND_ENDED))
        emitter.clear_history()

        assert emitter.history == []
        assert emitter.last is None

    def test_engine_subscription(self, roulette, dice):
        spins = []
        roulette.subscribe(spins.append, EventType.WHEEL_SPUN)
        roulette.place_bet("odd", 5)
        dice.results.append(7)

        roulette.spin()

        assert [e.data["color"] for e in spins] == ["red"]
