"""One-way ANOVA of mean OD by serotype, with Tukey HSD contrasts."""
import itertools
import logging

import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.stats.multicomp import pairwise_tukeyhsd

LOGGER = logging.getLogger(__name__)

SIGNIFICANCE = 0.05


def _serotype_frame(samples: pd.DataFrame) -> pd.DataFrame:
    data = samples[["mean", "serotype"]].dropna().rename(columns={"mean": "od"})
    return data.assign(serotype=data["serotype"].astype(str))


def can_compare_serotypes(samples: pd.DataFrame) -> bool:
    """At least two serotypes and at least one residual degree of freedom."""
    data = _serotype_frame(samples)
    n_groups = data["serotype"].nunique()
    return n_groups >= 2 and len(data) > n_groups


def _serotype_data(samples: pd.DataFrame) -> pd.DataFrame:
    data = _serotype_frame(samples)
    if data["serotype"].nunique() < 2:
        raise ValueError("At least two serotypes with OD readings are required.")
    if len(data) <= data["serotype"].nunique():
        raise ValueError("Serotype comparison needs more samples than serotypes.")
    return data


def serotype_anova(samples: pd.DataFrame) -> pd.DataFrame:
    data = _serotype_data(samples)
    fit = smf.ols("od ~ C(serotype)", data=data).fit()
    table = sm.stats.anova_lm(fit, typ=2)
    LOGGER.info("ANOVA od ~ serotype: F=%.3f, p=%.3g",
                table.loc["C(serotype)", "F"], table.loc["C(serotype)", "PR(>F)"])
    return table


def tukey_contrasts(samples: pd.DataFrame, alpha: float = SIGNIFICANCE) -> pd.DataFrame:
    data = _serotype_data(samples)
    result = pairwise_tukeyhsd(endog=data["od"], groups=data["serotype"], alpha=alpha)

    pairs = itertools.combinations(range(len(result.groupsunique)), 2)
    rows = []
    for idx, (i, j) in enumerate(pairs):
        group1, group2 = str(result.groupsunique[i]), str(result.groupsunique[j])
        rows.append({
            "group1": group1,
            "group2": group2,
            "meandiff": float(result.meandiffs[idx]),
            "p_adj": float(result.pvalues[idx]),
            "lower": float(result.confint[idx][0]),
            "upper": float(result.confint[idx][1]),
            "reject": bool(result.reject[idx]),
            "label": f"{group2}-{group1}",
        })
    return pd.DataFrame(rows)


def significant_contrasts(samples: pd.DataFrame, alpha: float = SIGNIFICANCE) -> pd.DataFrame:
    contrasts = tukey_contrasts(samples, alpha=alpha)
    significant = contrasts[contrasts["p_adj"] < alpha][["label", "p_adj"]]
    return significant.sort_values(["p_adj", "label"], kind="stable").reset_index(drop=True)
