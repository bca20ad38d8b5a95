"""Commission calculation logic for Pest Ops Workforce Analytics"""
from typing import Dict, List, Optional

from .models import Job, JobCommission
from config import (
    COMMISSION_RATE, ROLE_RATES, ASSIGNEE_ROLES, COMMISSION_POLICY,
    COMPLETED_STATUS, ERROR_MESSAGES
)


class CommissionPolicy:
    """How a job's commission base is divided between assignee roles"""

    name = ''

    def __init__(self, rate: float = COMMISSION_RATE):
        if not 0 <= rate <= 1:
            raise ValueError("Commission rate must be between 0 and 1")
        self.rate = rate

    def base_amount(self, price: float) -> float:
        return price * self.rate

    def role_rate(self, role: str) -> float:
        raise NotImplementedError

    def pays(self, role: str) -> bool:
        return self.role_rate(role) > 0

    def share(self, price: float, role: str) -> float:
        return self.base_amount(price) * self.role_rate(role)


class RoleSplitPolicy(CommissionPolicy):
    """5% of the price, split 60/30/10 between primary/secondary/tertiary."""

    name = 'role_split'

    def __init__(self, rate: float = COMMISSION_RATE,
                 role_rates: Optional[Dict[str, float]] = None):
        super().__init__(rate)
        self.role_rates = dict(role_rates if role_rates is not None else ROLE_RATES)
        unknown = set(self.role_rates) - set(ASSIGNEE_ROLES)
        if unknown:
            raise ValueError(f"Unknown assignee roles: {', '.join(sorted(unknown))}")
        if any(r < 0 for r in self.role_rates.values()):
            raise ValueError("Role rates must not be negative")
        if sum(self.role_rates.values()) > 1.0 + 1e-9:
            raise ValueError("Role rates must not sum to more than 1")

    def role_rate(self, role: str) -> float:
        return self.role_rates.get(role, 0.0)


class FlatPrimaryPolicy(CommissionPolicy):
    """The full 5% goes to the primary assignee; other roles earn nothing."""

    name = 'flat_primary'

    def role_rate(self, role: str) -> float:
        return 1.0 if role == 'primary' else 0.0


POLICIES = {
    RoleSplitPolicy.name: RoleSplitPolicy,
    FlatPrimaryPolicy.name: FlatPrimaryPolicy,
}


def get_policy(name: str = COMMISSION_POLICY) -> CommissionPolicy:
    """Instantiate the configured commission policy."""
    try:
        return POLICIES[name]()
    except KeyError:
        raise ValueError(ERROR_MESSAGES['unknown_policy'].format(policy=name)) from None


def is_commission_eligible(job: Job, completed_status: str = COMPLETED_STATUS) -> bool:
    """
    Completed, priced jobs with a completion date earn commission.

    Whether the completion date lies in the past or the future does not matter.
    """
    return (
        job.status == completed_status
        and job.price is not None
        and job.completed_date is not None
    )


class CommissionCalculator:
    """
    Calculates technician commission (provision) for jobs.

    Business Logic:
    ===============

    Eligibility:
    - Status must be the terminal "Completed" label
    - Price and completion date must both be present

    Role split (canonical policy):
    - Base = price * 5%
    - Primary assignee gets 60% of the base (3% of price)
    - Secondary assignee gets 30% of the base (1.5% of price)
    - Tertiary assignee gets 10% of the base (0.5% of price)
    - Unassigned roles are not paid, so the job total can be below the base

    Flat primary (alternative policy):
    - Primary assignee gets the whole base, nobody else is paid

    Amounts are always derived from the price; nothing is stored.
    """

    def __init__(self, policy: Optional[CommissionPolicy] = None):
        self.policy = policy if policy is not None else get_policy()

    def calculate_single(self, job: Job) -> Optional[JobCommission]:
        """
        Calculate commission shares for a single job.

        Args:
            job: The job to calculate

        Returns:
            JobCommission, or None when the job is not eligible
        """
        if not is_commission_eligible(job):
            return None

        shares = {}
        seen = set()
        for role, tech_id, _ in job.assignees:
            # A technician listed twice is paid for the higher role only
            if tech_id in seen:
                continue
            seen.add(tech_id)
            if self.policy.pays(role):
                shares[role] = self.policy.share(job.price, role)

        return JobCommission(
            job=job,
            base_amount=self.policy.base_amount(job.price),
            shares=shares
        )

    def calculate_batch(self, jobs: List[Job]) -> List[JobCommission]:
        """
        Calculate commission for multiple jobs, skipping ineligible ones.

        Args:
            jobs: List of jobs to calculate

        Returns:
            List of JobCommission objects
        """
        results = []
        for job in jobs:
            result = self.calculate_single(job)
            if result is not None:
                results.append(result)
        return results

    def calculate_summary(self, results: List[JobCommission]) -> dict:
        """
        Calculate summary totals for a list of job commissions.

        Args:
            results: List of JobCommission objects

        Returns:
            Dictionary with summary totals
        """
        return {
            'job_count': len(results),
            'total_revenue': sum(r.job.price for r in results),
            'total_base': sum(r.base_amount for r in results),
            'total_commission': sum(r.total for r in results),
            'primary_commission': sum(r.shares.get('primary', 0.0) for r in results),
            'secondary_commission': sum(r.shares.get('secondary', 0.0) for r in results),
            'tertiary_commission': sum(r.shares.get('tertiary', 0.0) for r in results)
        }
