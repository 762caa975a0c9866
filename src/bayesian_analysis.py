"""
Bayesian dementia analysis on the OASIS brain dataset

This script consolidates all analysis steps into a single workflow:
1. Data loading
2. Data cleaning and standardization
3. Exploratory statistics and plots
4. Bayesian logistic regression (Age + MMSE, scaled)
5. Coefficient plot, odds ratios and marginal effects
6. Real-world impact assessment and summary table
7. Maximum-likelihood reference comparison

Usage:
    python src/bayesian_analysis.py
"""

import os
import sys
from datetime import datetime

from oasis_analysis import (DataLoader, DataCleaner, StatisticalAnalyzer,
                            BayesianAnalyzer, ReferenceAnalyzer, Visualizer)


class Tee:
    """Helper class to redirect output to both console and file"""
    def __init__(self, *files):
        self.files = files
    def write(self, obj):
        for f in self.files:
            f.write(obj)
            f.flush()
    def flush(self):
        for f in self.files:
            f.flush()


def banner(title):
    print("\n" + "="*50)
    print(title)
    print("="*50)


def print_impact(impact, low_label, high_label, unit=""):
    low_pct = int(round(impact['low_quantile'] * 100))
    high_pct = int(round(impact['high_quantile'] * 100))
    suffix = f" {unit}" if unit else ""
    print(f"{low_label} ({low_pct}th percentile = {impact['low_value']:.1f}{suffix}):")
    print(f"  Average predicted probability: {impact['low_probability'] * 100:.1f}%")
    print(f"{high_label} ({high_pct}th percentile = {impact['high_value']:.1f}{suffix}):")
    print(f"  Average predicted probability: {impact['high_probability'] * 100:.1f}%")
    print(f"Absolute difference: {impact['difference_pp']:.1f} percentage points")


def main(data_path="data/merged_oasis_data.csv", results_dir="results/bayesian_analysis",
         sampler_kwargs=None):
    """Main analysis workflow"""
    print("="*60)
    print("BAYESIAN DEMENTIA ANALYSIS (OASIS)")
    print("="*60)
    print(f"Started at: {datetime.now()}")

    os.makedirs(results_dir, exist_ok=True)
    sampler_kwargs = sampler_kwargs or {}

    # Set up logging to file
    log_file = f"{results_dir}/analysis_log.txt"
    results = {}

    with open(log_file, "w", encoding='utf-8') as f:
        original_stdout = sys.stdout
        sys.stdout = Tee(sys.stdout, f)

        try:
            # =====================================
            # STEP 1: DATA LOADING
            # =====================================
            banner("STEP 1: DATA LOADING")

            loader = DataLoader(data_path)
            loader.explore_structure()
            df_raw = loader.load_data()

            # =====================================
            # STEP 2: DATA CLEANING & STANDARDIZATION
            # =====================================
            banner("STEP 2: DATA CLEANING & STANDARDIZATION")

            cleaner = DataCleaner()
            df_clean = cleaner.clean_dataset(df_raw)

            quality_report = cleaner.generate_quality_report(df_raw, df_clean)
            print("\n" + quality_report)

            df_clean.to_csv(f"{results_dir}/oasis_model_data.csv", index=False)
            results['data'] = df_clean

            # =====================================
            # STEP 3: EXPLORATORY ANALYSIS
            # =====================================
            banner("STEP 3: EXPLORATORY ANALYSIS")

            stat_analyzer = StatisticalAnalyzer(df_clean)
            results['descriptive'] = stat_analyzer.descriptive_statistics()
            results['comparisons'] = stat_analyzer.group_comparisons()

            visualizer = Visualizer(df_clean)
            visualizer.plot_exploratory_boxplots(results_dir)

            # =====================================
            # STEP 4: BAYESIAN MODEL
            # =====================================
            banner("STEP 4: BAYESIAN MODEL")

            bayes = BayesianAnalyzer(df_clean, **sampler_kwargs)
            idata = bayes.fit()
            bayes.save_trace(f"{results_dir}/posterior_trace.nc")

            results['diagnostics'] = bayes.convergence_diagnostics()
            results['model_summary'] = bayes.model_summary()

            visualizer.plot_trace(idata, var_names=bayes.parameters, results_dir=results_dir)
            visualizer.plot_posterior_predictive_check(bayes, results_dir)

            # =====================================
            # STEP 5: COEFFICIENTS & ODDS RATIOS
            # =====================================
            banner("STEP 5: COEFFICIENTS & ODDS RATIOS")

            visualizer.plot_coefficient_intervals(bayes, results_dir=results_dir)

            print("\n=== ODDS RATIOS (for 1 SD change) ===")
            or_results = bayes.odds_ratio_intervals(prob=0.95)
            print(or_results)

            or_median = bayes.median_odds_ratios()
            print("\nMedian Odds Ratios:")
            print(or_median)

            results['odds_ratio_intervals'] = or_results
            results['median_odds_ratios'] = or_median

            # =====================================
            # STEP 6: MARGINAL EFFECTS
            # =====================================
            banner("STEP 6: MARGINAL EFFECTS")

            print("\n=== Creating Marginal Effects Plots ===")
            mmse_effect = bayes.marginal_effect('MMSE', n=100)
            age_effect = bayes.marginal_effect('Age', n=100)
            visualizer.plot_marginal_effects(age_effect, mmse_effect,
                                             age_median=df_clean['Age'].median(),
                                             mmse_median=df_clean['MMSE'].median(),
                                             results_dir=results_dir)

            mmse_effect.to_csv(f"{results_dir}/marginal_effect_mmse.csv", index=False)
            age_effect.to_csv(f"{results_dir}/marginal_effect_age.csv", index=False)
            results['marginal_effects'] = {'MMSE': mmse_effect, 'Age': age_effect}

            # =====================================
            # STEP 7: REAL-WORLD IMPACT
            # =====================================
            banner("STEP 7: REAL-WORLD IMPACT")

            mmse_impact = bayes.counterfactual_impact('MMSE', direction=-1)
            print("\nMMSE Impact:")
            print_impact(mmse_impact, "Low MMSE", "High MMSE")

            age_impact = bayes.counterfactual_impact('Age', direction=1)
            print("\nAge Impact:")
            print_impact(age_impact, "Young", "Old", unit="years")

            results['impact'] = {'MMSE': mmse_impact, 'Age': age_impact}

            # =====================================
            # STEP 8: MODEL SUMMARY TABLE
            # =====================================
            banner("STEP 8: MODEL SUMMARY TABLE")

            model_summary = bayes.summary_table(prob=0.95)
            print(model_summary)
            model_summary.to_csv(f"{results_dir}/model_summary.csv", index=False)
            results['summary_table'] = model_summary

            print("\n=== INTERPRETATION GUIDE ===")
            print(bayes.interpretation_guide())

            # =====================================
            # STEP 9: REFERENCE FIT
            # =====================================
            banner("STEP 9: MAXIMUM-LIKELIHOOD REFERENCE")

            reference = ReferenceAnalyzer(df_clean, predictors=bayes.predictors)
            reference_or = reference.reference_odds_ratios()
            comparison = or_median.to_frame('bayes_median_or')
            comparison['mle_or'] = reference_or
            print(comparison)

            if df_clean['dementia_numeric'].value_counts().min() >= 5:
                results['reference_auc'] = reference.cross_validated_auc()
            results['reference_comparison'] = comparison

            # =====================================
            # STEP 10: OUTPUT FILES
            # =====================================
            banner("STEP 10: OUTPUT FILES")

            print(f"All results saved to: {results_dir}/")
            print("Files created:")
            print("  - oasis_model_data.csv (cleaned modelling data)")
            print("  - exploratory_boxplots.png (MMSE and Age by dementia status)")
            print("  - posterior_trace.nc (MCMC draws)")
            print("  - trace_plot.png (MCMC diagnostics)")
            print("  - posterior_predictive_check.png (observed vs predicted rate)")
            print("  - coefficient_intervals.png (posterior coefficients)")
            print("  - marginal_effects.png (predicted probability curves)")
            print("  - marginal_effect_mmse.csv, marginal_effect_age.csv")
            print("  - model_summary.csv (odds ratio table)")
            print("  - analysis_log.txt (complete log)")

        finally:
            sys.stdout = original_stdout

    print(f"\nAnalysis completed successfully!")
    print(f"Results saved to: {results_dir}/")
    print(f"Log file: {log_file}")
    print(f"Completed at: {datetime.now()}")

    return results


if __name__ == "__main__":
    main()
