"""
Visualization utilities for the OASIS dementia analysis
"""

import os

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.ticker import PercentFormatter
import seaborn as sns
import arviz as az


class Visualizer:
    """Exploratory and posterior plots"""

    def __init__(self, df):
        self.df = df
        # Set style
        plt.style.use('default')
        sns.set_style('whitegrid')

    @staticmethod
    def _save(fig, results_dir, filename):
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, filename)
        fig.savefig(path, dpi=300, bbox_inches='tight')
        plt.close(fig)
        return path

    def plot_exploratory_boxplots(self, results_dir="results"):
        """MMSE and Age by dementia status, side by side"""
        fig, axes = plt.subplots(1, 2, figsize=(12, 5))

        panels = [
            ('MMSE', 'coral', 'MMSE by Dementia Status', 'MMSE Score'),
            ('Age', 'steelblue', 'Age by Dementia Status', 'Age'),
        ]
        for ax, (col, color, title, ylabel) in zip(axes, panels):
            sns.boxplot(data=self.df, x='dementia_numeric', y=col, color=color,
                        boxprops={'alpha': 0.6}, ax=ax)
            ax.set_title(title)
            ax.set_xlabel('Dementia (0=No, 1=Yes)')
            ax.set_ylabel(ylabel)

        plt.tight_layout()
        path = self._save(fig, results_dir, 'exploratory_boxplots.png')
        print("Exploratory box plots saved")
        return path

    def plot_coefficient_intervals(self, analyzer, pars=None, prob=0.8, prob_outer=0.95,
                                   results_dir="results"):
        """Posterior medians with inner and outer credible intervals"""
        pars = analyzer.predictors if pars is None else list(pars)
        inner = analyzer.posterior_interval(pars, prob)
        outer = analyzer.posterior_interval(pars, prob_outer)
        medians = [float(np.median(analyzer.draws_for(name))) for name in pars]

        fig, ax = plt.subplots(figsize=(8, 1.5 + 0.8 * len(pars)))
        y_pos = np.arange(len(pars))[::-1]

        ax.hlines(y_pos, outer.iloc[:, 0], outer.iloc[:, 1], color='steelblue', linewidth=1.5)
        ax.hlines(y_pos, inner.iloc[:, 0], inner.iloc[:, 1], color='steelblue', linewidth=5)
        ax.scatter(medians, y_pos, color='navy', zorder=3, s=40)
        ax.axvline(0, linestyle='--', color='red')

        ax.set_yticks(y_pos)
        ax.set_yticklabels(pars)
        ax.set_xlabel('Log-odds')
        ax.set_title('Posterior Distributions of Coefficients\n'
                     'Effects of 1 SD change in each predictor (log-odds scale)')

        plt.tight_layout()
        path = self._save(fig, results_dir, 'coefficient_intervals.png')
        print("Coefficient interval plot saved")
        return path

    def plot_marginal_effects(self, age_effect, mmse_effect, age_median, mmse_median,
                              results_dir="results"):
        """Predicted dementia probability across Age and MMSE"""
        fig, axes = plt.subplots(2, 1, figsize=(9, 10))

        panels = [
            (axes[0], age_effect, 'Age', 'steelblue', 'Effect of Age on Dementia Probability',
             f'Holding MMSE at median ({mmse_median:.1f})', 'Age (years)'),
            (axes[1], mmse_effect, 'MMSE', 'coral', 'Effect of MMSE on Dementia Probability',
             f'Holding Age at median ({age_median:.1f} years)', 'MMSE Score'),
        ]
        for ax, effect, col, color, title, subtitle, xlabel in panels:
            ax.fill_between(effect[col], effect['lower'], effect['upper'], alpha=0.3, color=color)
            ax.plot(effect[col], effect['prob'], color=color, linewidth=2.5)
            ax.set_title(f'{title}\n{subtitle}')
            ax.set_xlabel(xlabel)
            ax.set_ylabel('Predicted Probability of Dementia')
            ax.yaxis.set_major_formatter(PercentFormatter(1.0))

        plt.tight_layout()
        path = self._save(fig, results_dir, 'marginal_effects.png')
        print("Marginal effects plot saved")
        return path

    def plot_trace(self, idata, var_names=None, results_dir="results"):
        """MCMC trace and posterior density per parameter"""
        axes = az.plot_trace(idata, var_names=var_names)
        fig = np.asarray(axes).ravel()[0].figure

        fig.tight_layout()
        path = self._save(fig, results_dir, 'trace_plot.png')
        print("Trace plot saved")
        return path

    def plot_posterior_predictive_check(self, analyzer, results_dir="results"):
        """Observed dementia rate against the posterior predicted rate"""
        rate_draws = analyzer.predicted_rate_draws()
        observed = float(self.df['dementia_numeric'].mean())

        fig, ax = plt.subplots(figsize=(8, 5))
        ax.hist(rate_draws, bins=50, alpha=0.7, color='steelblue', label='Posterior predicted rate')
        ax.axvline(observed, color='red', linestyle='--', label=f'Observed rate ({observed:.1%})')
        ax.xaxis.set_major_formatter(PercentFormatter(1.0))
        ax.set_xlabel('Dementia Rate')
        ax.set_ylabel('Frequency')
        ax.set_title('Posterior Predictive Check')
        ax.legend()

        plt.tight_layout()
        path = self._save(fig, results_dir, 'posterior_predictive_check.png')
        print("Posterior predictive check saved")
        return path
