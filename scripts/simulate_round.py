# Offline what-if allocation for a round, without touching the database.
# Usage example:
# python scripts/simulate_round.py --input donations.json --pool 10000
# python scripts/simulate_round.py --input donations.json --pool 2.5 --ether
#
# donations.json maps campaign ids to donation amounts in wei (or ether with --ether):
# {"1": ["1", "1", "1"], "2": ["100"]}
import sys
import json
import argparse
from typing import Dict, List

from amanah_matching.allocation import AllocationDistributor
from amanah_matching.units import format_ether, parse_ether


def simulate(contributions: Dict[str, List], pool) -> dict:
    """Score and allocate every campaign, returning a JSON-ready report"""
    distributor = AllocationDistributor()
    scores = distributor.calculate_scores(contributions)
    allocations = distributor.allocate(contributions, pool)

    return {
        'matching_pool': str(pool),
        'total_score': str(sum(scores.values())),
        'campaigns': {
            campaign_id: {
                'donation_count': len(contributions[campaign_id]),
                'score': str(scores[campaign_id]),
                'allocation': str(allocations[campaign_id]),
            }
            for campaign_id in contributions
        },
        'remainder': str(distributor.remainder(allocations, pool)),
    }


def load_contributions(path: str, ether: bool = False) -> Dict[str, List[int]]:
    with open(path, 'r') as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError("Input must be a JSON object of campaign id -> donation list")

    convert = parse_ether if ether else str
    return {str(campaign_id): [convert(amount) for amount in amounts] for campaign_id, amounts in raw.items()}


def main():
    parser = argparse.ArgumentParser(description='Simulate quadratic funding allocation for a round')
    parser.add_argument('--input', required=True, help='Path to JSON file of donations grouped by campaign')
    parser.add_argument('--pool', required=True, help='Matching pool (wei, or ether with --ether)')
    parser.add_argument('--ether', action='store_true', help='Amounts and pool are given in ether')

    args = parser.parse_args()

    try:
        contributions = load_contributions(args.input, args.ether)
        pool = parse_ether(args.pool) if args.ether else args.pool
        report = simulate(contributions, pool)
        if args.ether:
            for campaign in report['campaigns'].values():
                campaign['allocation_ether'] = format_ether(campaign['allocation'])
        print(json.dumps(report, indent=2))
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
