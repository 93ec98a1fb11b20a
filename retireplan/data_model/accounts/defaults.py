from __future__ import annotations

from typing import List


def default_account_rows() -> List[dict[str, float | str]]:
    return [
        {
            "Name": "Employer 401(k)",
            "Owner": "planner",
            "Account Type": "401k",
            "Balance": 250000.0,
            "Annual Contribution": 23000.0,
        },
        {
            "Name": "Rollover IRA",
            "Owner": "planner",
            "Account Type": "IRA",
            "Balance": 60000.0,
            "Annual Contribution": 0.0,
        },
        {
            "Name": "Roth IRA",
            "Owner": "planner",
            "Account Type": "Roth IRA",
            "Balance": 40000.0,
            "Annual Contribution": 7000.0,
        },
        {
            "Name": "HSA",
            "Owner": "planner",
            "Account Type": "HSA",
            "Balance": 15000.0,
            "Annual Contribution": 4150.0,
        },
        {
            "Name": "Taxable Brokerage",
            "Owner": "joint",
            "Account Type": "Taxable",
            "Balance": 80000.0,
            "Annual Contribution": 6000.0,
        },
    ]
