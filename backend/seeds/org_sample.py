"""Sample dealer-network hierarchy for local development and demos.
(Data only; scripts/seed_org.py --sample loads it.)
"""

# Region -> Area -> [Territories]
HIERARCHY = {
    'North': {
        'Delhi NCR': ['Delhi Central', 'Gurugram', 'Noida'],
        'Punjab': ['Ludhiana', 'Amritsar'],
    },
    'South': {
        'Karnataka': ['Bengaluru East', 'Bengaluru West', 'Mysuru'],
        'Tamil Nadu': ['Chennai', 'Coimbatore'],
    },
    'West': {
        'Maharashtra': ['Mumbai', 'Pune'],
        'Gujarat': ['Ahmedabad', 'Surat'],
    },
}

# dealer_code, business_name, territory name
DEALERS = [
    ('DL-001', 'Capital Motors', 'Delhi Central'),
    ('DL-002', 'Cyber City Traders', 'Gurugram'),
    ('PB-001', 'Five Rivers Agencies', 'Ludhiana'),
    ('KA-001', 'Garden City Distributors', 'Bengaluru East'),
    ('KA-002', 'Palace Town Retail', 'Mysuru'),
    ('TN-001', 'Marina Enterprises', 'Chennai'),
    ('MH-001', 'Gateway Supplies', 'Mumbai'),
    ('GJ-001', 'Sabarmati Sales', 'Ahmedabad'),
]

# username, role name, scope anchor (region/area/territory name), manager username
USERS = [
    ('north_admin', 'regional_admin', 'North', None),
    ('north_rm', 'regional_manager', 'North', 'north_admin'),
    ('ncr_am', 'area_manager', 'Delhi NCR', 'north_rm'),
    ('delhi_tm', 'territory_manager', 'Delhi Central', 'ncr_am'),
    ('delhi_se', 'sales_executive', 'Delhi Central', 'delhi_tm'),
    ('south_admin', 'regional_admin', 'South', None),
    ('south_rm', 'regional_manager', 'South', 'south_admin'),
    ('ka_am', 'area_manager', 'Karnataka', 'south_rm'),
]

SAMPLE_PASSWORD = 'ChangeMe123!'
