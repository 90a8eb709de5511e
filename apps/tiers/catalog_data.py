"""
Built-in tier, special tier and badge catalog.

Volumes are USD amounts with two decimal places, fee discounts are
percentages. A JSON file with the same shape can replace this through the
``TIER_CATALOG_PATH`` setting.
"""

DEFAULT_CATALOG = {
    'tiers': [
        {
            'level': 1,
            'name': 'Tech Chicken',
            'symbol': 'TCHK',
            'required_volume': '100000.00',
            'fee_discount': '10',
            'direct_claim': True,
            'required_badge_ids': [],
            'benefits': {
                'ai_agent_uses_per_week': 10,
                'exclusive_background': False,
                'strategy_priority': False,
            },
        },
        {
            'level': 2,
            'name': 'Quant Ape',
            'symbol': 'QAPE',
            'required_volume': '500000.00',
            'fee_discount': '20',
            'required_badge_ids': [3, 4],
            'benefits': {
                'ai_agent_uses_per_week': 20,
                'exclusive_background': True,
                'strategy_priority': False,
            },
        },
        {
            'level': 3,
            'name': 'On-chain Hunter',
            'symbol': 'HUNT',
            'required_volume': '5000000.00',
            'fee_discount': '30',
            'required_badge_ids': [7, 8, 9],
            'benefits': {
                'ai_agent_uses_per_week': 30,
                'exclusive_background': True,
                'strategy_priority': True,
            },
        },
        {
            'level': 4,
            'name': 'Alpha Alchemist',
            'symbol': 'ALCH',
            'required_volume': '10000000.00',
            'fee_discount': '40',
            'required_badge_ids': [11, 12, 13],
            'benefits': {
                'ai_agent_uses_per_week': 40,
                'exclusive_background': True,
                'strategy_priority': True,
                'exclusive_strategy_service': True,
            },
        },
        {
            'level': 5,
            'name': 'Quantum Alchemist',
            'symbol': 'QALC',
            'required_volume': '50000000.00',
            'fee_discount': '55',
            'required_badge_ids': [16, 17, 18, 19],
            'benefits': {
                'ai_agent_uses_per_week': 55,
                'exclusive_background': True,
                'strategy_priority': True,
                'exclusive_strategy_service': True,
                'custom_badges': True,
            },
        },
    ],
    'special_tiers': [
        {
            'code': 'trophy_breeder',
            'name': 'Trophy Breeder',
            'fee_discount': '25',
            'benefits': {
                'avatar_crown': True,
                'community_top_pin': True,
            },
        },
    ],
    'badges': [
        # Level 1
        {'id': 1, 'tier_level': 1, 'name': 'The Contract Enlightener', 'task_id': 101,
         'task_name': 'Contract Tutorial', 'rarity': 'common', 'contribution_value': '1.0',
         'description': 'Complete the contract novice guidance tutorial'},
        {'id': 2, 'tier_level': 1, 'name': 'Platform Enlightener', 'task_id': 102,
         'task_name': 'Profile Setup', 'rarity': 'common', 'contribution_value': '1.0',
         'description': 'Complete your trading profile'},
        # Level 2
        {'id': 3, 'tier_level': 2, 'name': 'First Trade', 'task_id': 103,
         'task_name': 'First Trade', 'rarity': 'common', 'contribution_value': '1.0',
         'description': 'Complete your first trade'},
        {'id': 4, 'tier_level': 2, 'name': 'Volume Milestone', 'task_id': 104,
         'task_name': 'Volume Trading', 'rarity': 'common', 'contribution_value': '1.0',
         'description': 'Reach $10K trading volume'},
        {'id': 5, 'tier_level': 2, 'name': 'Strategy User', 'task_id': 105,
         'task_name': 'AI Strategy', 'rarity': 'uncommon', 'contribution_value': '1.5',
         'description': 'Use an AI trading strategy'},
        {'id': 6, 'tier_level': 2, 'name': 'Community Member', 'task_id': 106,
         'task_name': 'Join Community', 'rarity': 'common', 'contribution_value': '1.0',
         'description': 'Join the trading community'},
        # Level 3
        {'id': 7, 'tier_level': 3, 'name': 'Profit Master', 'task_id': 107,
         'task_name': 'Profit Streak', 'rarity': 'rare', 'contribution_value': '2.0',
         'description': 'Achieve a 30-day profit streak'},
        {'id': 8, 'tier_level': 3, 'name': 'Risk Manager', 'task_id': 108,
         'task_name': 'Drawdown Control', 'rarity': 'uncommon', 'contribution_value': '1.5',
         'description': 'Maintain a low drawdown ratio'},
        {'id': 9, 'tier_level': 3, 'name': 'Market Analyst', 'task_id': 109,
         'task_name': 'Share Analysis', 'rarity': 'uncommon', 'contribution_value': '1.5',
         'description': 'Share a market analysis'},
        {'id': 10, 'tier_level': 3, 'name': 'Referral Champion', 'task_id': 110,
         'task_name': 'Referral Program', 'rarity': 'rare', 'contribution_value': '2.0',
         'description': 'Refer 5 active traders'},
        # Level 4
        {'id': 11, 'tier_level': 4, 'name': 'Alpha Generator', 'task_id': 111,
         'task_name': 'Consistent Alpha', 'rarity': 'epic', 'contribution_value': '3.0',
         'description': 'Generate consistent alpha'},
        {'id': 12, 'tier_level': 4, 'name': 'Strategy Creator', 'task_id': 112,
         'task_name': 'Publish Strategy', 'rarity': 'epic', 'contribution_value': '3.0',
         'description': 'Create a profitable strategy'},
        {'id': 13, 'tier_level': 4, 'name': 'Mentor', 'task_id': 113,
         'task_name': 'Mentorship', 'rarity': 'rare', 'contribution_value': '2.0',
         'description': 'Mentor new traders'},
        {'id': 14, 'tier_level': 4, 'name': 'Innovation Leader', 'task_id': 114,
         'task_name': 'Platform Contribution', 'rarity': 'epic', 'contribution_value': '3.0',
         'description': 'Contribute to platform development'},
        {'id': 15, 'tier_level': 4, 'name': 'Competition Winner', 'task_id': 115,
         'task_name': 'Trading Competition', 'rarity': 'legendary', 'contribution_value': '4.0',
         'description': 'Win a trading competition'},
        # Level 5
        {'id': 16, 'tier_level': 5, 'name': 'Quantum Trader', 'task_id': 116,
         'task_name': 'Quantum Strategies', 'rarity': 'legendary', 'contribution_value': '4.0',
         'description': 'Master quantum trading strategies'},
        {'id': 17, 'tier_level': 5, 'name': 'Market Maker', 'task_id': 117,
         'task_name': 'Provide Liquidity', 'rarity': 'legendary', 'contribution_value': '4.0',
         'description': 'Provide significant liquidity'},
        {'id': 18, 'tier_level': 5, 'name': 'Ecosystem Builder', 'task_id': 118,
         'task_name': 'Build Ecosystem', 'rarity': 'legendary', 'contribution_value': '4.0',
         'description': 'Build the trading ecosystem'},
        {'id': 19, 'tier_level': 5, 'name': 'Thought Leader', 'task_id': 119,
         'task_name': 'Industry Recognition', 'rarity': 'legendary', 'contribution_value': '4.0',
         'description': 'Recognized industry expert'},
        {'id': 20, 'tier_level': 5, 'name': 'Platform Ambassador', 'task_id': 120,
         'task_name': 'Ambassador Program', 'rarity': 'legendary', 'contribution_value': '4.0',
         'description': 'Official platform ambassador'},
    ],
}
