import logging
from typing import Any, Optional

import numpy as np
import pandas as pd
from pydantic import ConfigDict
from pydantic.dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(config=ConfigDict(arbitrary_types_allowed=True))
class DGEList:
    """
    Container of raw counts and their annotations, mirroring edgeR's DGEList.

    Only the parts needed to export a dataset for the edgeR command line script are
    kept: the count matrix, the feature (gene) annotation, the sample annotation
    and the grouping factor of the samples.

    Args:
        counts: Raw counts, features as rows and samples as columns. Values must be
            non-negative integers.
        genes: Feature annotation, one row per row of `counts` and in the same order.
            If not given, a table holding only the feature names is used. A
            "Feature" column with the feature names is added when missing.
        samples: Sample annotation, one row per column of `counts` and in the same
            order. If not given, a table holding only the sample names is used. A
            "Sample" column with the sample names is added when missing.
        group: Grouping factor of the samples. If not given, the "group" column of
            `samples` is used, or a single level "1" when there is no such column.

    Attributes:
        group: Categorical series indexed by sample name. It is also stored in the
            "group" column of `samples`, as edgeR does.

    Examples:
        >>> counts = pd.DataFrame(
        ...     [[1, 0, 4, 2], [3, 5, 0, 1]],
        ...     index=["gene1", "gene2"],
        ...     columns=["s1", "s2", "s3", "s4"],
        ... )
        >>> y = DGEList(counts=counts, group=["Control"] * 2 + ["Treatment"] * 2)
        >>> list(y.group_levels)
        ['Control', 'Treatment']
    """

    counts: pd.DataFrame
    genes: Optional[pd.DataFrame] = None
    samples: Optional[pd.DataFrame] = None
    group: Optional[Any] = None

    def __post_init__(self) -> None:
        # 0. Counts
        if not all(np.issubdtype(t, np.number) for t in self.counts.dtypes):
            raise ValueError("Counts must be numeric.")
        values = self.counts.to_numpy(dtype=float)
        if np.isnan(values).any():
            raise ValueError("Counts must not contain missing values.")
        if (values < 0).any():
            raise ValueError("Counts must be non-negative.")
        if (values != np.round(values)).any():
            logger.warning("Counts contain non-integer values.")
        self.counts = self.counts.copy()
        self.counts.columns = self.counts.columns.astype(str)
        self.counts.index = self.counts.index.astype(str)

        # 1. Feature annotation
        if self.genes is None:
            self.genes = pd.DataFrame(
                {"Feature": self.counts.index}, index=self.counts.index
            )
        if len(self.genes) != len(self.counts):
            raise ValueError(
                f"Feature annotation has {len(self.genes)} rows but the count matrix"
                f" has {len(self.counts)} features."
            )
        if "Feature" not in self.genes.columns:
            self.genes = self.genes.copy()
            self.genes.insert(0, "Feature", self.counts.index.to_numpy())

        # 2. Sample annotation
        if self.samples is None:
            self.samples = pd.DataFrame(
                {"Sample": self.counts.columns}, index=self.counts.columns
            )
        if len(self.samples) != self.counts.shape[1]:
            raise ValueError(
                f"Sample annotation has {len(self.samples)} rows but the count matrix"
                f" has {self.counts.shape[1]} samples."
            )
        if "Sample" not in self.samples.columns:
            self.samples = self.samples.copy()
            self.samples.insert(0, "Sample", self.counts.columns.to_numpy())

        # 3. Grouping factor
        if self.group is None:
            self.group = (
                self.samples["group"]
                if "group" in self.samples.columns
                else ["1"] * self.counts.shape[1]
            )
        group = pd.Categorical(self.group)
        if len(group) != self.counts.shape[1]:
            raise ValueError("The grouping factor must have one value per sample.")
        group = pd.Series(group, index=self.counts.columns, name="group")
        self.group = group
        self.samples = self.samples.copy()
        self.samples["group"] = group.array

        logger.debug(
            f"DGEList with {self.n_features} features, {self.n_samples} samples and"
            f" groups {list(self.group_levels)}"
        )

    @property
    def n_features(self) -> int:
        return self.counts.shape[0]

    @property
    def n_samples(self) -> int:
        return self.counts.shape[1]

    @property
    def sample_names(self) -> pd.Index:
        """Sample labels, i.e. the column names of the count matrix."""
        return self.counts.columns

    @property
    def group_levels(self) -> pd.Index:
        """Levels of the grouping factor, in factor order."""
        return self.group.cat.categories
