import random

from gridzen.factories.catalog import catalog_size, colors, pattern_names, patterns


def test_colors_are_distinct_and_sized():
    for count in (4, 5, 6, 36):
        palette = colors(count)
        assert len(palette) == count
        assert len(set(palette)) == count


def test_colors_jitter_keeps_count_and_channel_range():
    palette = colors(6, random.Random(3))
    assert len(set(palette)) == 6
    assert all(0 <= channel <= 255 for rgb in palette for channel in rgb)


def test_colors_zero_count_is_empty():
    assert colors(0) == []


def test_patterns_take_catalog_prefix():
    assert [p.name for p in patterns(4)] == ["dots", "stripes", "waves", "grid"]
    assert [p.name for p in patterns(6)] == ["dots", "stripes", "waves", "grid", "zigzag", "checks"]
    assert pattern_names(5) == frozenset({"dots", "stripes", "waves", "grid", "zigzag"})
    assert catalog_size() == 6
