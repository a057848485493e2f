"""
Tests for reuse detection, the health score and radar metrics.
"""
from vault_hygiene.analytics.hygiene import (
    calculate_health_score,
    calculate_radar_metrics,
    check_reuse,
    count_weak_labels,
    is_weak_label,
)


class TestCheckReuse:
    """Exact-password grouping."""

    def test_shared_password(self, make_item, strong):
        a = make_item("Tr0ub4dor&3", id="a")
        b = make_item("Tr0ub4dor&3", id="b")
        c = make_item(strong[0], id="c")
        assert check_reuse([a, b, c]) == {"a": 2, "b": 2}

    def test_group_size(self, make_item):
        items = [make_item("same", id=str(i)) for i in range(3)]
        assert check_reuse(items) == {"0": 3, "1": 3, "2": 3}

    def test_exact_equality_only(self, make_item):
        items = [make_item("Secret1", id="a"), make_item("secret1", id="b"),
                 make_item("Secret1 ", id="c")]
        assert check_reuse(items) == {}

    def test_empty_passwords_ignored(self, make_item):
        assert check_reuse([make_item("", id="a"), make_item("", id="b")]) == {}

    def test_empty_vault(self):
        assert check_reuse([]) == {}


class TestHealthScore:
    """Composite 0-100 score."""

    def test_empty_vault(self, now):
        assert calculate_health_score([], {}, now) == 100

    def test_healthy_vault(self, make_item, strong, now):
        items = [make_item(p) for p in strong]
        assert calculate_health_score(items, check_reuse(items), now) == 100

    def test_small_vault_penalty(self, make_item, strong, now):
        items = [make_item(strong[0])]
        assert calculate_health_score(items, {}, now) == 90

    def test_reuse_penalty(self, make_item, now):
        items = [make_item("Tr0ub4dor&3", id="a"), make_item("Tr0ub4dor&3", id="b")]
        reuse = check_reuse(items)
        # 5 per reused item, plus the small-vault deduction
        assert calculate_health_score(items, reuse, now) == 100 - 10 - 10

    def test_reuse_penalty_capped(self, make_item, now):
        items = [make_item("x7#Kq!9vLm@2Rz$w", id=str(i)) for i in range(10)]
        reuse = check_reuse(items)
        assert calculate_health_score(items, reuse, now) == 70

    def test_weak_penalty(self, make_item, now):
        assert calculate_health_score([make_item("abc")], {}, now) == 50

    def test_aging_penalty(self, make_item, strong, now):
        items = [make_item(strong[0], days_old=100), make_item(strong[1]),
                 make_item(strong[2])]
        assert calculate_health_score(items, {}, now) == 93

    def test_exactly_ninety_days_not_old(self, make_item, strong, now):
        items = [make_item(strong[0], days_old=90), make_item(strong[1]),
                 make_item(strong[2])]
        assert calculate_health_score(items, {}, now) == 100

    def test_uses_updated_at(self, make_item, strong, now):
        item = make_item(strong[0], days_old=400)
        item = item.model_copy(update={"updated_at": now})
        items = [item, make_item(strong[1]), make_item(strong[2])]
        assert calculate_health_score(items, {}, now) == 100

    def test_monotonic_in_weak_fraction(self, make_item, strong, now):
        scores = []
        for weak in range(4):
            items = [make_item(f"w{i}") for i in range(weak)]
            items += [make_item(f"{strong[0]}{i}") for i in range(3 - weak)]
            scores.append(calculate_health_score(items, check_reuse(items), now))
        assert scores == sorted(scores, reverse=True)

    def test_monotonic_in_age(self, make_item, strong, now):
        scores = []
        for old in range(4):
            items = [make_item(strong[i], days_old=200 if i < old else 0) for i in range(3)]
            scores.append(calculate_health_score(items, {}, now))
        assert scores == sorted(scores, reverse=True)

    def test_clamped(self, make_item, now):
        items = [make_item("aaa", id=str(i), days_old=400) for i in range(2)]
        score = calculate_health_score(items, check_reuse(items), now)
        assert 0 <= score <= 100
        assert score == 100 - 40 - 10 - 20 - 10


class TestWeakLabel:
    """List-view weak label uses a 45-bit threshold."""

    def test_label_threshold(self, make_item):
        assert is_weak_label(make_item("aaaaaaaa")) is True
        assert is_weak_label(make_item("Tr0ub4dor&3")) is False

    def test_count(self, make_item, strong):
        items = [make_item("abc"), make_item("abcd"), make_item(strong[0])]
        assert count_weak_labels(items) == 2


class TestRadarMetrics:
    """Normalised five-axis profile."""

    def test_empty_vault(self, now):
        radar = calculate_radar_metrics([], {}, now)
        assert radar.model_dump() == {
            "entropy": 100, "reuse": 100, "aging": 100, "breach_risk": 100, "health": 100,
        }

    def test_mixed_vault(self, make_item, strong, now):
        items = [make_item(strong[0]), make_item("password")]
        radar = calculate_radar_metrics(items, check_reuse(items), now)
        # average entropy (104 + 37) / 2 = 70.5 bits of 80
        assert radar.entropy == 88
        assert radar.reuse == 100
        assert radar.aging == 100
        assert radar.breach_risk == 50
        assert radar.health == calculate_health_score(items, {}, now) == 70

    def test_reuse_and_aging_axes(self, make_item, strong, now):
        items = [make_item("Tr0ub4dor&3", id="a", days_old=120),
                 make_item("Tr0ub4dor&3", id="b"),
                 make_item(strong[0], id="c"),
                 make_item(strong[1], id="d")]
        radar = calculate_radar_metrics(items, check_reuse(items), now)
        assert radar.reuse == 50
        assert radar.aging == 75

    def test_entropy_axis_capped(self, make_item, strong, now):
        radar = calculate_radar_metrics([make_item(p) for p in strong], {}, now)
        assert radar.entropy == 100
