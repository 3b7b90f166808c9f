from __future__ import annotations

import pytest

from modules.orders.constants import STATUS_ALIASES, OrderStatus
from modules.orders.exceptions import InvalidStatus
from modules.orders.status import normalize_status

pytestmark = pytest.mark.unit


class TestNormalizeStatus:
    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_canonical_values_map_to_themselves(self, status):
        assert normalize_status(status.value) is status

    @pytest.mark.parametrize(
        "alias, expected",
        [
            ("pendente", OrderStatus.PENDING),
            ("aceito", OrderStatus.CONFIRMED),
            ("em_preparo", OrderStatus.PREPARING),
            ("separação", OrderStatus.PREPARING),
            ("pronto_para_retirada", OrderStatus.READY),
            ("a_caminho", OrderStatus.IN_DELIVERY),
            ("out_for_delivery", OrderStatus.IN_DELIVERY),
            ("concluído", OrderStatus.DELIVERED),
            ("canceled", OrderStatus.CANCELLED),
        ],
    )
    def test_aliases(self, alias, expected):
        assert normalize_status(alias) == expected

    def test_every_alias_targets_a_canonical_status(self):
        for alias, status in STATUS_ALIASES.items():
            assert normalize_status(alias) == status

    def test_lookup_is_case_sensitive(self):
        with pytest.raises(InvalidStatus):
            normalize_status("Pendente")

    def test_surrounding_whitespace_is_not_stripped(self):
        with pytest.raises(InvalidStatus):
            normalize_status(" confirmed")

    @pytest.mark.parametrize("raw", ["", "shipped", "CONFIRMED", None, 3])
    def test_unknown_values_raise(self, raw):
        with pytest.raises(InvalidStatus):
            normalize_status(raw)

    def test_error_message_names_the_value(self):
        with pytest.raises(InvalidStatus, match="shipped"):
            normalize_status("shipped")
