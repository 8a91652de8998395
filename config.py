"""Configuration settings for TechTimes"""
import os

# Application
APP_NAME = "TechTimes"

# Formula defaults (1 AW = 5 minutes)
DEFAULT_AW_MINUTES = 5
DEFAULT_MONTHLY_TARGET = 180.0
DEFAULT_DAILY_WORKING_HOURS = 8.5
DEFAULT_LUNCH_BREAK_MINUTES = 30
DEFAULT_START_TIME = "07:00"
DEFAULT_END_TIME = "18:00"

# Efficiency thresholds (percent)
EFFICIENCY_GREEN_THRESHOLD = 65
EFFICIENCY_YELLOW_THRESHOLD = 31

# Default working weekdays (0=Sunday .. 6=Saturday)
DEFAULT_WORKING_WEEKDAYS = (1, 2, 3, 4, 5)

# Saturday frequency codes
SATURDAY_FREQUENCIES = {
    'none': 'No Saturdays',
    'every': 'Every Saturday',
    '1-in-2': '1 in 2 (Every Other)',
    '1-in-3': '1 in 3',
    '1-in-4': '1 in 4',
    'custom': 'Custom Dates',
}

# Frequencies that need a next working Saturday anchor
SATURDAY_ROTATIONS = {'1-in-2': 2, '1-in-3': 3, '1-in-4': 4}

# Absence types and where their hours are deducted from
ABSENCE_TYPES = {
    'holiday': 'Holiday',
    'sickness': 'Sickness',
    'training': 'Training',
}

DEDUCTION_TYPES = {
    'AVAILABLE_HOURS': 'Available hours',
    'MONTHLY_TARGET': 'Monthly target',
}

# Vehicle health check tags (informational only)
VHC_STATUSES = ['NONE', 'GREEN', 'AMBER', 'RED']

EFFICIENCY_LABELS = {
    'green': 'Excellent',
    'yellow': 'Good',
    'red': 'Poor',
}

# Local storage
DATA_DIR = os.environ.get('TECHTIMES_DATA_DIR', 'data')

# Logging
LOG_LEVEL = os.environ.get('TECHTIMES_LOG_LEVEL', 'INFO')

# Excel styling
EXCEL_STYLES = {
    'header_bg_color': 'D3D3D3',  # Light gray
    'summary_bg_color': 'FFE0CC',  # Light orange
    'font_name': 'Arial',
    'font_size': 10
}
