#!/usr/bin/env python3
"""
Run assignment demo: ramp an experiment -> summarize -> balance check.

Prints the included fraction after each ramp step and the group counts of
the final population.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

def main():
    from src.experiment_groups import (
        assignment_table,
        check_group_balance,
        create_experiment,
        create_experiment_group,
        simulate_percentage_ramp,
        summarize_assignments,
    )

    experiment = create_experiment(
        name="demoRamp",
        active=True,
        groups={
            "CONTROL": create_experiment_group(value="control", schema_value="CONTROL"),
            "VARIANT": create_experiment_group(value="variant", schema_value="VARIANT"),
        },
    )
    schedule = [5, 15, 40, 70, 100]

    print("1. Running percentage ramp simulation...")
    ramp, stores = simulate_percentage_ramp(experiment, schedule, n_users=5000)
    for _, row in ramp.iterrows():
        print(f"   target={row['target_percentage']:>5}%  included={row['included_fraction']:.3f}")

    print("2. Summarizing stored assignments...")
    table = assignment_table(stores, [experiment])
    summary = summarize_assignments(table)
    print(summary.to_string(index=False))

    print("3. Checking group balance...")
    balance = check_group_balance(table, experiment)
    status = "OK" if balance["srm_passed"] else "IMBALANCED"
    print(f"   [{status}] counts={balance['counts']} p={balance['p_value']:.4f}")

if __name__ == "__main__":
    main()
