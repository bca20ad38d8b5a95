"""Pricing pattern analysis for Pest Ops Workforce Analytics"""
import pandas as pd
from typing import Dict, List, Optional

from .models import Job
from .classifiers import CategoryClassifier, ComplexityScorer
from config import (
    MIN_CATEGORY_SAMPLES, MAX_PATTERN_SAMPLES, DURATION_BUCKETS, COMPLEXITY_LEVELS
)

TECHNICIAN_COUNT_BUCKETS = [1, 2, 3]


def _price_summary(prices: pd.Series) -> dict:
    return {
        'count': int(len(prices)),
        'mean_price': float(prices.mean()),
        'min_price': float(prices.min()),
        'max_price': float(prices.max())
    }


class PricingPatternAnalyzer:
    """
    Groups priced jobs by pest category and profiles each group.

    Per category:
    - price mean / median / min / max / spread
    - mean duration over jobs that have both timestamps
    - price by number of assigned technicians (1, 2, 3)
    - price by complexity level
    - price by duration bucket (short / medium / long)
    - the most recent jobs as samples

    Categories with too few priced jobs are left out entirely.
    """

    def __init__(self,
                 classifier: Optional[CategoryClassifier] = None,
                 scorer: Optional[ComplexityScorer] = None,
                 min_samples: int = MIN_CATEGORY_SAMPLES,
                 max_samples: int = MAX_PATTERN_SAMPLES):
        self.classifier = classifier if classifier is not None else CategoryClassifier()
        self.scorer = scorer if scorer is not None else ComplexityScorer()
        self.min_samples = min_samples
        self.max_samples = max_samples

    def to_dataframe(self, jobs: List[Job]) -> pd.DataFrame:
        """
        One row per job with a positive price.

        Columns: id, title, category, source, price, duration_hours,
        technician_count, complexity_score, complexity_level, recency
        """
        rows = []
        for job in jobs:
            if job.price is None or job.price <= 0:
                continue
            score = self.scorer.score(job)
            duration = job.duration_hours
            rows.append({
                'id': job.id,
                'title': job.title,
                'category': self.classifier.classify(job),
                'source': job.source,
                'price': float(job.price),
                'duration_hours': duration if duration is not None and duration >= 0 else None,
                'technician_count': job.technician_count,
                'complexity_score': score,
                'complexity_level': self.scorer.level(score),
                'recency': job.completed_date or job.created_at or job.start_date
            })

        columns = ['id', 'title', 'category', 'source', 'price', 'duration_hours',
                   'technician_count', 'complexity_score', 'complexity_level', 'recency']
        df = pd.DataFrame(rows, columns=columns)
        df['duration_hours'] = pd.to_numeric(df['duration_hours'], errors='coerce')
        df['recency'] = pd.to_datetime(df['recency'])
        return df

    def analyze(self, jobs: List[Job]) -> List[dict]:
        """
        Pricing patterns, most represented category first.

        Args:
            jobs: Jobs to profile (unpriced ones are ignored)

        Returns:
            List of pattern dictionaries
        """
        df = self.to_dataframe(jobs)
        if df.empty:
            return []

        patterns = []
        for category, group in df.groupby('category', sort=False):
            if len(group) < self.min_samples:
                continue
            patterns.append(self._pattern(category, group))

        return sorted(patterns, key=lambda p: p['case_count'], reverse=True)

    def by_category(self, jobs: List[Job]) -> Dict[str, dict]:
        return {p['category']: p for p in self.analyze(jobs)}

    def _pattern(self, category: str, group: pd.DataFrame) -> dict:
        prices = group['price']
        durations = group['duration_hours'].dropna()
        min_price = float(prices.min())
        max_price = float(prices.max())

        return {
            'category': category,
            'case_count': int(len(group)),
            'price_stats': {
                'mean': float(prices.mean()),
                'median': float(prices.median()),
                'min': min_price,
                'max': max_price,
                'spread': max_price - min_price
            },
            'duration_stats': {
                'mean_hours': float(durations.mean()) if not durations.empty else 0.0,
                'jobs_with_duration': int(len(durations))
            },
            'duration_buckets': self._duration_buckets(group),
            'technician_count_breakdown': self._technician_breakdown(group),
            'complexity_distribution': self._complexity_distribution(group),
            'samples': self._samples(group)
        }

    def _technician_breakdown(self, group: pd.DataFrame) -> Dict[str, dict]:
        breakdown = {}
        for count in TECHNICIAN_COUNT_BUCKETS:
            prices = group.loc[group['technician_count'] == count, 'price']
            if not prices.empty:
                breakdown[str(count)] = _price_summary(prices)
        return breakdown

    def _complexity_distribution(self, group: pd.DataFrame) -> Dict[str, dict]:
        distribution = {}
        for _, level in sorted(COMPLEXITY_LEVELS, key=lambda l: l[0]):
            subset = group[group['complexity_level'] == level]
            if subset.empty:
                continue
            summary = _price_summary(subset['price'])
            summary['mean_score'] = float(subset['complexity_score'].mean())
            distribution[level] = summary
        return distribution

    def _duration_buckets(self, group: pd.DataFrame) -> Dict[str, dict]:
        timed = group.dropna(subset=['duration_hours'])
        buckets = {}
        lower = None
        for upper, label in DURATION_BUCKETS:
            mask = pd.Series(True, index=timed.index)
            if lower is not None:
                mask &= timed['duration_hours'] > lower
            if upper is not None:
                mask &= timed['duration_hours'] <= upper
            subset = timed[mask]
            buckets[label] = {
                'count': int(len(subset)),
                'mean_price': float(subset['price'].mean()) if not subset.empty else 0.0,
                'mean_hours': float(subset['duration_hours'].mean()) if not subset.empty else 0.0
            }
            lower = upper
        return buckets

    def _samples(self, group: pd.DataFrame) -> List[dict]:
        recent = group.sort_values('recency', ascending=False, na_position='last', kind='mergesort')
        samples = []
        for row in recent.head(self.max_samples).itertuples(index=False):
            samples.append({
                'id': row.id,
                'title': row.title,
                'price': row.price,
                'source': row.source,
                'duration_hours': round(float(row.duration_hours), 1) if pd.notna(row.duration_hours) else 0.0,
                'technician_count': int(row.technician_count),
                'complexity_score': int(row.complexity_score),
                'complexity_level': row.complexity_level,
                'date': row.recency.date().isoformat() if pd.notna(row.recency) else ''
            })
        return samples
