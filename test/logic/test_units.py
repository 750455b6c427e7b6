import numpy as np
import pytest

from usmu.types import Current, Voltage


class TestQuantity:
    def test_stored_in_base_unit(self):
        assert Current(20, "mA").to("A") == np.float32(0.02)
        assert Voltage(500, "mV").to("V") == np.float32(0.5)
        assert Current(10, "nA").base == np.float32(1e-8)

    def test_round_values_survive_unit_conversion(self):
        assert Current(40, "mA").to("mA") == np.float32(40.0)
        assert Current(20, "mA").to("mA") == np.float32(20.0)

    def test_unknown_unit(self):
        with pytest.raises(ValueError, match="Unknown unit"):
            Voltage(1, "A")
        with pytest.raises(ValueError):
            Current(1, "mA").to("V")

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("-1 V", Voltage(-1, "V")),
            ("250mV", Voltage(0.25, "V")),
            ("1.5", Voltage(1.5, "V")),
            (" +2e-1 V ", Voltage(0.2, "V")),
        ],
    )
    def test_parse_voltage(self, text, expected):
        assert Voltage.parse(text) == expected

    def test_parse_current(self):
        assert Current.parse("20 mA") == Current(0.02, "A")
        assert Current.parse("10uA").to("uA") == np.float32(10.0)

    @pytest.mark.parametrize("text", ["", "V", "1 V V", "one volt"])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            Voltage.parse(text)

    def test_arithmetic(self):
        assert Voltage(1, "V") + Voltage(500, "mV") == Voltage(1.5, "V")
        assert Voltage(1, "V") - Voltage(2, "V") == Voltage(-1, "V")
        assert 2 * Voltage(1, "V") == Voltage(2, "V")
        assert Voltage(1, "V") / 4 == Voltage(0.25, "V")
        assert Voltage(1, "V") / Voltage(0.5, "V") == 2.0
        assert -Voltage(1, "V") == Voltage(-1, "V")
        assert abs(Current(-3, "mA")) == Current(3, "mA")

    def test_no_mixing_of_quantities(self):
        with pytest.raises(TypeError):
            Voltage(1, "V") + Current(1, "A")
        with pytest.raises(TypeError):
            Voltage(1, "V") < Current(1, "A")
        assert Voltage(1, "V") != Current(1, "A")

    def test_ordering_and_hash(self):
        assert Voltage(-1, "V") < Voltage(0, "V") <= Voltage(0, "V")
        assert max(Current(1, "mA"), Current(2, "mA")) == Current(2, "mA")
        assert len({Voltage(1, "V"), Voltage(1000, "mV")}) == 1

    def test_str(self):
        assert str(Voltage(1.5, "V")) == "1.5 V"
        assert "Current" in repr(Current(1, "A"))
