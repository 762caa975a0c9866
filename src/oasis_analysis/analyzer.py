"""
Analysis utilities for the OASIS dementia analysis
"""

import pandas as pd
import numpy as np
from scipy import stats
from scipy.special import expit
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import StratifiedKFold, cross_val_score
import arviz as az
import pymc as pm

from .data_cleaner import DataCleaner


DEFAULT_PREDICTORS = ('Age_scaled', 'MMSE_scaled')
OUTCOME = 'dementia_numeric'

# rstanarm-equivalent priors: normal(0, 1.65) on the intercept,
# normal(0, 1) autoscaled by 1/sd(x) on each coefficient
PRIOR_INTERCEPT_SD = 1.65
PRIOR_COEF_SD = 1.0

# Convergence thresholds
RHAT_MAX = 1.01
ESS_MIN = 400


def _raw_name(predictor):
    return predictor[:-len('_scaled')] if predictor.endswith('_scaled') else predictor


def _quantile_labels(prob):
    lower = (1 - prob) / 2
    return f"{lower * 100:g}%", f"{(1 - lower) * 100:g}%"


class StatisticalAnalyzer:
    """Exploratory statistics by dementia status"""

    def __init__(self, df):
        self.df = df

    def descriptive_statistics(self):
        """Summarize continuous variables by dementia status"""
        print("=== DESCRIPTIVE STATISTICS ===")

        results = {}
        for col in ['Age', 'MMSE', 'nWBV']:
            print(f"\n--- {col} by Dementia Status (0=No, 1=Yes) ---")
            col_stats = self.df.groupby(OUTCOME)[col].describe()
            print(col_stats)
            results[col] = col_stats

        return results

    def group_comparisons(self):
        """Compare predictors between the no-dementia and dementia groups"""
        print("\n=== GROUP COMPARISONS ===")

        results = {}
        no_dementia = self.df[self.df[OUTCOME] == 0]
        dementia = self.df[self.df[OUTCOME] == 1]

        for col in ['Age', 'MMSE', 'nWBV']:
            group0 = no_dementia[col].dropna()
            group1 = dementia[col].dropna()

            if len(group0) > 1 and len(group1) > 1:
                ttest = stats.ttest_ind(group0, group1, equal_var=False)
                mannwhitney = stats.mannwhitneyu(group0, group1, alternative='two-sided')
                print(f"{col} (Welch t-test): t={ttest.statistic:.3f}, p={ttest.pvalue:.6f}")
                print(f"{col} (Mann-Whitney U): U={mannwhitney.statistic:.3f}, p={mannwhitney.pvalue:.6f}")
                results[f'{col}_ttest'] = ttest
                results[f'{col}_mannwhitney'] = mannwhitney

        # Sex distribution
        print("\n--- Sex Distribution ---")
        sex_crosstab = pd.crosstab(self.df['sex'], self.df[OUTCOME], margins=True)
        print(sex_crosstab)

        contingency = pd.crosstab(self.df['sex'], self.df[OUTCOME])
        if min(contingency.shape) > 1:
            sex_chi2 = stats.chi2_contingency(contingency)
            print(f"Sex association (chi-square): χ²={sex_chi2[0]:.3f}, p={sex_chi2[1]:.6f}")
            results['sex_chi2'] = sex_chi2

        results['sex_crosstab'] = sex_crosstab
        return results


class BayesianAnalyzer:
    """Bayesian logistic regression of dementia status fitted with NUTS"""

    def __init__(self, df, predictors=DEFAULT_PREDICTORS, outcome=OUTCOME,
                 prior_intercept_sd=PRIOR_INTERCEPT_SD, prior_sd=PRIOR_COEF_SD,
                 autoscale=True, chains=4, tune=5000, draws=5000,
                 random_seed=84735, target_accept=0.95):
        if df[outcome].nunique() < 2:
            raise ValueError(f"{outcome} has a single class; logistic model cannot be fitted")

        self.df = df
        self.predictors = list(predictors)
        self.outcome = outcome
        self.prior_intercept_sd = prior_intercept_sd
        self.prior_sd = prior_sd
        self.autoscale = autoscale
        self.chains = chains
        self.tune = tune
        self.draws = draws
        self.random_seed = random_seed
        self.target_accept = target_accept

        self.scaling = DataCleaner.scaling_parameters(df)
        self.model = None
        self.idata = None

    @property
    def parameters(self):
        return ['Intercept'] + self.predictors

    @property
    def formula(self):
        return f"{self.outcome} ~ {' + '.join(self.predictors)}"

    def coefficient_prior_scales(self):
        """Prior SD per coefficient; autoscale divides by the predictor's SD"""
        scales = {}
        for name in self.predictors:
            scale = self.prior_sd
            if self.autoscale:
                sd = float(self.df[name].std(ddof=1))
                scale = self.prior_sd / sd if sd > 0 else self.prior_sd
            scales[name] = scale
        return scales

    def build_model(self):
        """Build the PyMC model"""
        y = self.df[self.outcome].to_numpy(int)
        prior_scales = self.coefficient_prior_scales()

        with pm.Model() as model:
            intercept = pm.Normal('Intercept', mu=0.0, sigma=self.prior_intercept_sd)
            eta = intercept
            for name in self.predictors:
                beta = pm.Normal(name, mu=0.0, sigma=prior_scales[name])
                eta = eta + beta * self.df[name].to_numpy(float)
            pm.Bernoulli(self.outcome, logit_p=eta, observed=y)

        self.model = model
        return model

    def fit(self):
        """Sample the posterior with NUTS and return ArviZ InferenceData"""
        print("\n=== BAYESIAN LOGISTIC REGRESSION ===")
        print(f"Model: {self.formula}")
        print(f"Observations: {len(self.df)}")
        print(f"Chains: {self.chains}, tune: {self.tune}, draws: {self.draws}, seed: {self.random_seed}")

        if self.model is None:
            self.build_model()

        with self.model:
            self.idata = pm.sample(
                draws=self.draws,
                tune=self.tune,
                chains=self.chains,
                target_accept=self.target_accept,
                random_seed=self.random_seed,
                return_inferencedata=True,
            )

        return self.idata

    def _check_fitted(self):
        if self.idata is None:
            raise ValueError("Model has not been fitted; call fit() first")

    def draws_for(self, name):
        """Flatten chain/draw into a single samples dim"""
        self._check_fitted()
        return self.idata.posterior[name].values.reshape(-1)

    def convergence_diagnostics(self):
        """R-hat and effective sample sizes, with warnings for poor mixing"""
        self._check_fitted()

        diagnostics = az.summary(self.idata, var_names=self.parameters, kind='diagnostics')
        print("\n--- Convergence Diagnostics ---")
        print(diagnostics)

        bad_rhat = diagnostics.index[diagnostics['r_hat'] > RHAT_MAX].tolist()
        low_ess = diagnostics.index[diagnostics['ess_bulk'] < ESS_MIN].tolist()
        if bad_rhat:
            print(f"⚠️  WARNING: R-hat > {RHAT_MAX} for {bad_rhat}; chains may not have converged")
        if low_ess:
            print(f"⚠️  WARNING: bulk ESS < {ESS_MIN} for {low_ess}; estimates may be unstable")

        return diagnostics

    def model_summary(self):
        """Posterior median and MAD_SD per parameter"""
        rows = []
        for name in self.parameters:
            samples = self.draws_for(name)
            rows.append({
                'parameter': name,
                'Median': float(np.median(samples)),
                'MAD_SD': float(stats.median_abs_deviation(samples, scale='normal')),
            })
        summary = pd.DataFrame(rows).set_index('parameter')

        print("\nfamily:       binomial [logit]")
        print(f"formula:      {self.formula}")
        print(f"observations: {len(self.df)}")
        print(f"predictors:   {len(self.parameters)}")
        print("------")
        print(summary.round(3))

        return summary

    def posterior_interval(self, pars=None, prob=0.95):
        """Central posterior quantile intervals"""
        pars = self.predictors if pars is None else list(pars)
        lower_label, upper_label = _quantile_labels(prob)
        lower_q = (1 - prob) / 2

        rows = {}
        for name in pars:
            samples = self.draws_for(name)
            rows[name] = np.quantile(samples, [lower_q, 1 - lower_q])

        return pd.DataFrame.from_dict(rows, orient='index', columns=[lower_label, upper_label])

    def odds_ratio_intervals(self, pars=None, prob=0.95):
        return np.exp(self.posterior_interval(pars, prob))

    def median_odds_ratios(self, pars=None):
        pars = self.predictors if pars is None else list(pars)
        return pd.Series({name: float(np.exp(np.median(self.draws_for(name)))) for name in pars})

    def posterior_epred(self, newdata):
        """
        Expected probability of dementia for every posterior draw and row
        Returns array of shape (n_draws, n_rows)
        """
        self._check_fitted()

        eta = self.draws_for('Intercept')[:, None]
        for name in self.predictors:
            eta = eta + self.draws_for(name)[:, None] * newdata[name].to_numpy(float)[None, :]

        return expit(eta)

    def _rescale(self, data, raw_col):
        params = self.scaling[raw_col]
        data[f'{raw_col}_scaled'] = (data[raw_col] - params['mean']) / params['sd']
        return data

    def marginal_effect(self, focus, n=100, prob=0.95):
        """Predicted probability across the focus variable, others held at their median"""
        raw_predictors = [_raw_name(p) for p in self.predictors]
        if focus not in raw_predictors:
            raise ValueError(f"{focus} is not a model predictor: {raw_predictors}")

        grid = pd.DataFrame({
            focus: np.linspace(self.df[focus].min(), self.df[focus].max(), n)
        })
        for col in raw_predictors:
            if col != focus:
                grid[col] = float(self.df[col].median())
        for col in raw_predictors:
            grid = self._rescale(grid, col)

        preds = self.posterior_epred(grid)
        lower_q = (1 - prob) / 2

        grid['prob'] = preds.mean(axis=0)
        grid['lower'] = np.quantile(preds, lower_q, axis=0)
        grid['upper'] = np.quantile(preds, 1 - lower_q, axis=0)
        return grid

    def counterfactual_impact(self, variable, low_q=0.1, high_q=0.9, direction=1):
        """
        Average predicted probability with the variable set to a low vs high quantile
        difference_pp is signed: high minus low for direction=1, low minus high for direction=-1
        """
        if direction not in (1, -1):
            raise ValueError(f"direction must be 1 or -1, got {direction}")

        low_value = float(self.df[variable].quantile(low_q))
        high_value = float(self.df[variable].quantile(high_q))

        low_data = self._rescale(self.df.copy().assign(**{variable: low_value}), variable)
        high_data = self._rescale(self.df.copy().assign(**{variable: high_value}), variable)

        pred_low = self.posterior_epred(low_data).mean(axis=0)
        pred_high = self.posterior_epred(high_data).mean(axis=0)

        low_probability = float(np.mean(pred_low))
        high_probability = float(np.mean(pred_high))

        return {
            'variable': variable,
            'low_quantile': low_q,
            'high_quantile': high_q,
            'low_value': low_value,
            'high_value': high_value,
            'low_probability': low_probability,
            'high_probability': high_probability,
            'direction': direction,
            'difference_pp': direction * (high_probability - low_probability) * 100,
        }

    def summary_table(self, pars=None, prob=0.95):
        """Median log-odds estimates with odds ratios and their interval"""
        pars = self.predictors if pars is None else list(pars)
        interval = self.posterior_interval(pars, prob)

        table = pd.DataFrame({
            'term': pars,
            'estimate': [float(np.median(self.draws_for(name))) for name in pars],
        })
        table['odds_ratio'] = np.exp(table['estimate'])
        table['or_lower'] = np.exp(interval.iloc[:, 0].to_numpy())
        table['or_upper'] = np.exp(interval.iloc[:, 1].to_numpy())
        return table

    def predicted_rate_draws(self):
        """Posterior distribution of the sample's mean predicted dementia rate"""
        return self.posterior_epred(self.df).mean(axis=1)

    def interpretation_guide(self):
        lines = ["Odds Ratios are for 1 standard deviation change in predictor:"]
        units = {'Age': 'years', 'MMSE': 'points', 'nWBV': ''}
        for name in self.predictors:
            raw = _raw_name(name)
            sd = self.scaling[raw]['sd'] if raw in self.scaling else float(self.df[raw].std(ddof=1))
            lines.append(f"- {raw} SD = {sd:.3g} {units.get(raw, '')}".rstrip())
        lines.append("")
        lines.append("OR > 1 = increases odds of dementia")
        lines.append("OR < 1 = decreases odds of dementia")
        lines.append("OR = 1 = no effect")
        return '\n'.join(lines)

    def save_trace(self, path):
        self._check_fitted()
        self.idata.to_netcdf(path)
        return path


class ReferenceAnalyzer:
    """Maximum-likelihood logistic regression used to cross-check the posterior"""

    def __init__(self, df, predictors=DEFAULT_PREDICTORS, outcome=OUTCOME, random_state=42):
        self.df = df
        self.predictors = list(predictors)
        self.outcome = outcome
        self.random_state = random_state
        self.model = None

    def _new_model(self):
        # Very weak L2 penalty so estimates match the unpenalized MLE
        return LogisticRegression(C=1e6, max_iter=1000)

    def fit_reference(self):
        """Fit the frequentist reference model"""
        X = self.df[self.predictors]
        y = self.df[self.outcome].astype(int)

        self.model = self._new_model()
        self.model.fit(X, y)
        return self.model

    def reference_odds_ratios(self):
        if self.model is None:
            self.fit_reference()
        return pd.Series(np.exp(self.model.coef_[0]), index=self.predictors)

    def cross_validated_auc(self, cv=5):
        """Stratified cross-validated ROC AUC"""
        X = self.df[self.predictors]
        y = self.df[self.outcome].astype(int)

        folds = StratifiedKFold(n_splits=cv, shuffle=True, random_state=self.random_state)
        scores = cross_val_score(self._new_model(), X, y, cv=folds, scoring='roc_auc')
        print(f"Cross-validated ROC AUC: {scores.mean():.3f} ± {scores.std():.3f}")
        return scores
