import pytest

from dialectcsv import ConfigError, ValidationError, validators as v


def passes(check, value):
    try:
        check(value)
    except ValidationError:
        return False
    return True


def test_required():
    check = v.required()
    assert passes(check, "x")
    assert passes(check, 0)
    assert not passes(check, None)
    assert not passes(check, "  ")


def test_bounds_skip_missing_values():
    assert passes(v.min_value(1), None)
    assert passes(v.min_value(1), 1)
    assert not passes(v.min_value(1), 0)
    assert not passes(v.max_value(1), 2)


def test_length_and_regex():
    assert passes(v.length(2, 3), "abc")
    assert not passes(v.length(max_len=2), "abc")
    assert not passes(v.length(min_len=4), "abc")
    assert passes(v.regex(r"[A-Z]{3}\d{2}"), "ABC12")
    # fullmatch, not search
    assert not passes(v.regex(r"[A-Z]{3}"), "ABCD")


def test_bad_validator_configuration():
    with pytest.raises(ConfigError):
        v.length()
    with pytest.raises(ConfigError):
        v.regex("(")
    with pytest.raises(ConfigError):
        v.any_of()


def test_one_of():
    check = v.one_of("A", "B")
    assert passes(check, "A")
    with pytest.raises(ValidationError) as exc:
        check("C")
    assert "not in" in str(exc.value)


def test_combinators():
    positive_even = v.all_of(v.min_value(1), v.custom(lambda n: n % 2 == 0, "odd"))
    assert passes(positive_even, 4)
    assert not passes(positive_even, 3)
    assert not passes(positive_even, -2)

    small_or_huge = v.any_of(v.max_value(10), v.min_value(1000))
    assert passes(small_or_huge, 5)
    assert passes(small_or_huge, 5000)
    with pytest.raises(ValidationError) as exc:
        small_or_huge(500)
    assert "no alternative matched" in str(exc.value)

    not_admin = v.negate(v.one_of("admin"), "reserved name")
    assert passes(not_admin, "bob")
    with pytest.raises(ValidationError) as exc:
        not_admin("admin")
    assert "reserved name" in str(exc.value)


def test_run_all_collects_every_failure():
    errors = v.run_all([v.min_value(10), v.max_value(0), v.one_of(5)], 5)
    assert len(errors) == 2
