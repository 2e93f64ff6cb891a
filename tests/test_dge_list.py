import pandas as pd
import pytest

from components.dge_list import DGEList


def test_group_levels_sorted(counts):
    y = DGEList(counts=counts, group=["Treatment"] * 5 + ["Control"] * 5)

    assert list(y.group_levels) == ["Control", "Treatment"]
    assert list(y.group.index) == list(counts.columns)
    assert list(y.samples["group"]) == ["Treatment"] * 5 + ["Control"] * 5


def test_defaults(counts):
    y = DGEList(counts=counts)

    assert list(y.genes["Feature"]) == list(counts.index)
    assert list(y.samples["Sample"]) == list(counts.columns)
    assert list(y.group_levels) == ["1"]
    assert y.n_features == 10
    assert y.n_samples == 10


def test_group_from_samples(counts):
    samples = pd.DataFrame(
        {"group": ["a", "b"] * 5}, index=counts.columns
    )
    y = DGEList(counts=counts, samples=samples)

    assert list(y.group) == ["a", "b"] * 5


def test_categorical_group_keeps_level_order(counts):
    group = pd.Categorical(
        ["Treatment"] * 5 + ["Control"] * 5, categories=["Treatment", "Control"]
    )
    y = DGEList(counts=counts, group=group)

    assert list(y.group_levels) == ["Treatment", "Control"]


def test_input_counts_not_modified(counts):
    counts.columns = range(10)
    _ = DGEList(counts=counts)

    assert list(counts.columns) == list(range(10))


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"genes": pd.DataFrame({"Feature": ["g1"]})}, "Feature annotation"),
        ({"samples": pd.DataFrame({"Sample": ["s1"]})}, "Sample annotation"),
        ({"group": ["a", "b"]}, "grouping factor"),
    ],
)
def test_invalid_annotations(counts, kwargs, match):
    with pytest.raises(ValueError, match=match):
        DGEList(counts=counts, **kwargs)


def test_negative_counts(counts):
    counts.iloc[0, 0] = -1
    with pytest.raises(ValueError, match="non-negative"):
        DGEList(counts=counts)


def test_annotation_ids_added(counts):
    samples = pd.DataFrame({"group": ["a", "b"] * 5}, index=counts.columns)
    genes = pd.DataFrame({"GeneSymbol": ["SYM"] * 10}, index=counts.index)
    y = DGEList(counts=counts, genes=genes, samples=samples)

    assert list(y.samples.columns) == ["Sample", "group"]
    assert list(y.samples["Sample"]) == list(counts.columns)
    assert list(y.genes.columns) == ["Feature", "GeneSymbol"]
    assert list(y.genes["Feature"]) == list(counts.index)
    assert "Sample" not in samples.columns


def test_missing_counts(counts):
    counts = counts.astype(float)
    counts.iloc[2, 3] = float("nan")

    with pytest.raises(ValueError, match="missing values"):
        DGEList(counts=counts)


def test_non_integer_counts_warn(counts, caplog):
    counts = counts.astype(float)
    counts.iloc[0, 1] = 2.5

    DGEList(counts=counts)

    assert "non-integer" in caplog.text
