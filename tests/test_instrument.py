import pytest

from spectrolab.model.instrument import Display, InstrumentState


def test_placeholder_in_both_modes():
    instrument = InstrumentState()
    assert instrument.reading == "-- %T"
    instrument.absorbance_mode = True
    assert instrument.reading == "-- Abs"


def test_zero_reading():
    instrument = InstrumentState()
    instrument.show_zero()
    assert instrument.reading == "100.0 %T"
    instrument.absorbance_mode = True
    assert instrument.reading == "0.000 Abs"


@pytest.mark.parametrize("percent_t, t_text, abs_text", [
    (49.0, "49.0 %T", "0.310 Abs"),
    (39.0, "39.0 %T", "0.409 Abs"),
    (95.0, "95.0 %T", "0.022 Abs"),
])
def test_value_in_both_modes(percent_t, t_text, abs_text):
    instrument = InstrumentState()
    instrument.show_value(percent_t)
    assert instrument.display == Display.VALUE
    assert instrument.reading == t_text
    instrument.absorbance_mode = True
    assert instrument.reading == abs_text
    instrument.absorbance_mode = False
    assert instrument.reading == t_text


def test_out_of_range_reading():
    instrument = InstrumentState()
    instrument.show_out_of_range()
    assert instrument.reading == "0.0 %T"
    instrument.absorbance_mode = True
    assert instrument.reading == ">1.5 Abs"


def test_huge_absorbance_is_capped_on_display():
    instrument = InstrumentState(absorbance_mode=True)
    instrument.show_value(1e-12)
    assert instrument.reading == ">10 Abs"
