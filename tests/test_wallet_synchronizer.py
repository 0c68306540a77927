import unittest

from application.events import CurrencyUpdated, EventHub, WalletReplaced
from application.registry import CurrencyRegistry
from application.wallets import WalletSynchronizer, filter_wallet_entries
from domain.models import SyncPolicy, UpdateReason
from domain.repositories import VariableReplicator
from infrastructure.memory.currency_repository import InMemoryCurrencyRepository
from infrastructure.memory.wallet_repository import InMemoryWalletRepository


class RecordingReplicator(VariableReplicator):
    def __init__(self):
        self.calls = []

    def broadcast_variable(self, player_id: str, sync_key: str, value: int) -> None:
        self.calls.append(("broadcast", player_id, sync_key, value))

    def send_own_variable(self, player_id: str, sync_key: str, value: int) -> None:
        self.calls.append(("own", player_id, sync_key, value))


class WalletSynchronizerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.events = EventHub()
        self.updates = []
        self.replacements = []
        self.events.subscribe(CurrencyUpdated, self.updates.append)
        self.events.subscribe(WalletReplaced, self.replacements.append)

        self.registry = CurrencyRegistry(InMemoryCurrencyRepository(), self.events)
        self.registry.define("gold", "Gold", SyncPolicy.BROADCAST)
        self.registry.define("cash", "Cash", SyncPolicy.OWNER_ONLY)
        self.registry.define("xp", "Experience", SyncPolicy.NONE)

        self.replicator = RecordingReplicator()
        self.wallets = WalletSynchronizer(
            self.registry, InMemoryWalletRepository(), self.replicator
        )
        self.wallets.on_player_join("p1")

    # -- lifecycle / reads ---------------------------------------------------

    def test_new_player_has_empty_wallet(self):
        self.assertTrue(self.wallets.has_wallet("p1"))
        self.assertEqual(self.wallets.get_wallet("p1"), {})
        self.assertEqual(self.wallets.get_balance("p1", "gold"), 0)

    def test_balance_of_unregistered_currency_is_zero(self):
        self.assertEqual(self.wallets.get_balance("p1", "unknown"), 0)
        self.assertEqual(self.wallets.get_balance("nobody", "gold"), 0)

    def test_leave_discards_wallet(self):
        self.wallets.set_balance("p1", "gold", 10)
        self.wallets.on_player_leave("p1")

        self.assertFalse(self.wallets.has_wallet("p1"))
        self.assertEqual(self.wallets.get_wallet("p1"), {})
        self.assertFalse(self.wallets.set_balance("p1", "gold", 5))

    def test_rejoin_resets_wallet(self):
        self.wallets.set_balance("p1", "gold", 10)
        self.wallets.on_player_join("p1")

        self.assertEqual(self.wallets.get_wallet("p1"), {})

    def test_get_wallet_returns_a_copy(self):
        self.wallets.set_balance("p1", "gold", 10)
        snapshot = self.wallets.get_wallet("p1")
        snapshot["gold"] = 999

        self.assertEqual(self.wallets.get_balance("p1", "gold"), 10)

    def test_failed_mutations_on_unknown_players_leave_no_lock(self):
        for i in range(50):
            self.assertFalse(self.wallets.set_balance(f"ghost{i}", "gold", 1))
            self.assertFalse(self.wallets.adjust_balance(f"ghost{i}", "gold", 1))
            self.assertFalse(self.wallets.replace_wallet(f"ghost{i}", {"gold": 1}))

        self.assertEqual(list(self.wallets._locks), ["p1"])

    def test_rejoin_reuses_the_player_lock(self):
        lock = self.wallets._locks["p1"]
        self.wallets.on_player_leave("p1")
        self.wallets.on_player_join("p1")

        self.assertIs(self.wallets._locks["p1"], lock)

    def test_leave_of_unknown_player_is_harmless(self):
        self.wallets.on_player_leave("nobody")

        self.assertNotIn("nobody", self.wallets._locks)
        self.assertTrue(self.wallets.has_wallet("p1"))

    # -- set_balance -----------------------------------------------------------

    def test_set_balance_broadcasts_and_notifies(self):
        self.assertTrue(self.wallets.set_balance("p1", "gold", 100))

        self.assertEqual(self.wallets.get_balance("p1", "gold"), 100)
        self.assertEqual(self.replicator.calls, [("broadcast", "p1", "currency_gold", 100)])
        self.assertEqual(
            self.updates,
            [CurrencyUpdated("p1", "gold", 0, 100, UpdateReason.SET)],
        )
        self.assertEqual(self.updates[0].reason, "set")

    def test_set_balance_records_previous_amount(self):
        self.wallets.set_balance("p1", "gold", 100)
        self.wallets.set_balance("p1", "gold", 40)

        self.assertEqual(self.updates[-1].old_amount, 100)
        self.assertEqual(self.updates[-1].new_amount, 40)

    def test_owner_only_currency_is_sent_to_owner(self):
        self.wallets.set_balance("p1", "cash", 7)

        self.assertEqual(self.replicator.calls, [("own", "p1", "currency_cash", 7)])

    def test_none_policy_is_never_replicated(self):
        self.wallets.set_balance("p1", "xp", 7)
        self.wallets.adjust_balance("p1", "xp", 3)

        self.assertEqual(self.replicator.calls, [])
        self.assertEqual(self.wallets.get_balance("p1", "xp"), 10)

    def test_set_balance_rejects_bad_input(self):
        cases = [
            ("unknown", 5),
            ("gold", 1.5),
            ("gold", "5"),
            ("gold", None),
            ("gold", True),
            (None, 5),
        ]
        for key, amount in cases:
            with self.subTest(key=key, amount=amount):
                self.assertFalse(self.wallets.set_balance("p1", key, amount))

        self.assertEqual(self.wallets.get_wallet("p1"), {})
        self.assertEqual(self.updates, [])
        self.assertEqual(self.replicator.calls, [])

    def test_set_balance_without_wallet_fails(self):
        self.assertFalse(self.wallets.set_balance("ghost", "gold", 5))
        self.assertFalse(self.wallets.has_wallet("ghost"))

    # -- adjust_balance --------------------------------------------------------

    def test_adjust_balance_applies_delta(self):
        self.wallets.set_balance("p1", "gold", 100)

        self.assertTrue(self.wallets.adjust_balance("p1", "gold", -30))

        self.assertEqual(self.wallets.get_balance("p1", "gold"), 70)
        self.assertEqual(
            self.updates[-1],
            CurrencyUpdated("p1", "gold", 100, 70, UpdateReason.ADJUST),
        )
        self.assertEqual(self.replicator.calls[-1], ("broadcast", "p1", "currency_gold", 70))

    def test_adjust_on_absent_key_starts_from_zero(self):
        self.assertTrue(self.wallets.adjust_balance("p1", "cash", 25))

        self.assertEqual(self.wallets.get_balance("p1", "cash"), 25)
        self.assertEqual(self.updates[-1].old_amount, 0)

    def test_two_adjustments_match_single_set(self):
        self.wallets.on_player_join("p2")
        self.wallets.adjust_balance("p1", "gold", 15)
        self.wallets.adjust_balance("p1", "gold", -40)
        self.wallets.set_balance("p2", "gold", 15 + -40)

        self.assertEqual(
            self.wallets.get_balance("p1", "gold"),
            self.wallets.get_balance("p2", "gold"),
        )

    def test_balances_may_go_negative(self):
        self.assertTrue(self.wallets.adjust_balance("p1", "gold", -5))
        self.assertEqual(self.wallets.get_balance("p1", "gold"), -5)

    def test_adjust_balance_rejects_bad_input(self):
        self.wallets.set_balance("p1", "gold", 10)
        self.updates.clear()

        self.assertFalse(self.wallets.adjust_balance("p1", "gold", 2.5))
        self.assertFalse(self.wallets.adjust_balance("p1", "missing", 1))

        self.assertEqual(self.wallets.get_balance("p1", "gold"), 10)
        self.assertEqual(self.updates, [])

    def test_players_have_separate_wallets(self):
        self.wallets.on_player_join("p2")
        self.wallets.set_balance("p1", "gold", 10)

        self.assertEqual(self.wallets.get_balance("p2", "gold"), 0)

    # -- replace_wallet --------------------------------------------------------

    def test_replace_wallet_filters_invalid_entries(self):
        self.registry.define("gold2", "Gold 2", SyncPolicy.NONE)

        ok = self.wallets.replace_wallet(
            "p1", {"gold": 5, "unknown_currency": 9, "gold2": "not_a_number"}
        )

        self.assertTrue(ok)
        self.assertEqual(self.wallets.get_wallet("p1"), {"gold": 5})

    def test_replace_wallet_replicates_and_notifies(self):
        self.wallets.set_balance("p1", "xp", 3)
        self.replicator.calls.clear()

        self.assertTrue(self.wallets.replace_wallet("p1", {"gold": 1, "cash": 2, "xp": 3}))

        self.assertEqual(
            self.replicator.calls,
            [
                ("broadcast", "p1", "currency_gold", 1),
                ("own", "p1", "currency_cash", 2),
            ],
        )
        self.assertEqual(
            self.replacements,
            [WalletReplaced("p1", {"xp": 3}, {"gold": 1, "cash": 2, "xp": 3})],
        )

    def test_replace_wallet_drops_everything_invalid_but_succeeds(self):
        self.wallets.set_balance("p1", "gold", 50)

        self.assertTrue(self.wallets.replace_wallet("p1", {"nope": 1, "gold": 1.0}))

        self.assertEqual(self.wallets.get_wallet("p1"), {})
        self.assertEqual(self.replacements[-1].old_wallet, {"gold": 50})

    def test_replace_wallet_rejects_non_mappings(self):
        self.wallets.set_balance("p1", "gold", 50)

        for value in (None, [("gold", 1)], "gold=1", 42):
            with self.subTest(value=value):
                self.assertFalse(self.wallets.replace_wallet("p1", value))

        self.assertEqual(self.wallets.get_wallet("p1"), {"gold": 50})
        self.assertEqual(self.replacements, [])

    def test_replace_wallet_without_wallet_fails(self):
        self.assertFalse(self.wallets.replace_wallet("ghost", {"gold": 1}))
        self.assertEqual(self.replacements, [])

    def test_replaced_wallet_is_independent_of_input(self):
        incoming = {"gold": 5}
        self.wallets.replace_wallet("p1", incoming)
        incoming["gold"] = 500

        self.assertEqual(self.wallets.get_balance("p1", "gold"), 5)


class FilterWalletEntriesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = CurrencyRegistry(InMemoryCurrencyRepository(), EventHub())
        self.registry.define("gold", "Gold", SyncPolicy.NONE)
        self.registry.define("cash", "Cash", SyncPolicy.NONE)

    def test_keeps_registered_integer_entries(self):
        self.assertEqual(
            filter_wallet_entries({"gold": 1, "cash": -2}, self.registry),
            {"gold": 1, "cash": -2},
        )

    def test_drops_unknown_keys_and_non_integers(self):
        raw = {
            "gold": True,
            "cash": 3,
            "silver": 4,
            1: 5,
            None: 6,
        }
        self.assertEqual(filter_wallet_entries(raw, self.registry), {"cash": 3})

    def test_drops_nested_and_float_values(self):
        raw = {"gold": {"amount": 1}, "cash": 2.0}
        self.assertEqual(filter_wallet_entries(raw, self.registry), {})


if __name__ == "__main__":
    unittest.main()
