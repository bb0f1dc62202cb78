import pytest

from plotbook.schema import AestheticMapping, SummaryColumns


def test_mapping_columns_are_distinct_and_ordered():
    mapping = AestheticMapping(x="dose", y="len", color="supp", shape="supp", facet="site")
    assert mapping.columns() == ("dose", "len", "supp", "site")


def test_mapping_overrides_return_copy():
    mapping = AestheticMapping(x="dose", y="len", color="supp", size="weight")
    swapped = mapping.with_overrides(color="dataset", size=None)

    assert swapped.columns() == ("dose", "len", "dataset")
    assert mapping.color == "supp"
    with pytest.raises(ValueError, match="Unknown aesthetics"):
        mapping.with_overrides(alpha="weight")


def test_summary_columns():
    assert SummaryColumns().all() == ("n", "mean", "sd", "se", "ci_half", "ci_low", "ci_high")
