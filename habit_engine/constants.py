MAX_SESSIONS = 31
MAX_SKIN_SESSIONS = 31

BODY_TASKS = [
    (1, "Push ups"),
    (2, "Pull ups"),
    (3, "Crunches"),
    (4, "Crucifix"),
    (5, "Russian Twists"),
    (6, "Biceps"),
    (7, "Shoulders"),
    (8, "Triceps"),
    (9, "Forearms"),
    (10, "Calisthenics"),
]
SKIN_TASKS = [
    (1, "Body Wash"),
    (2, "Face Wash"),
    (3, "Clean"),
    (4, "Face Serum"),
    (5, "Eye Blow Cleaning"),
]
MIND_SUBJECTS = [
    ("dsa", "DSA"),
    ("wt", "WT"),
    ("ddco", "DDCO"),
    ("mcse", "MCSE"),
    ("afll", "AFLL"),
]
UNITS_PER_SUBJECT = 4

PROGRESS_KEYS = ["biceps", "shoulders", "triceps", "abs", "forearms"]
# First match wins; abs is counted independently.
PROGRESS_LABEL_MATCHES = [
    ("bicep", "biceps"),
    ("shoulder", "shoulders"),
    ("forearm", "forearms"),
    ("tricep", "triceps"),
]
ABS_EXERCISES = {"crunches", "crucifix", "russian twists"}

PRIORITIES = ["low", "medium", "high"]
DEFAULT_PRIORITY = "medium"
DEFAULT_REMIND_MINUTES = 30

DAILY_DOMAINS = ["body", "skin", "mind"]

BODY_RULE = "body"
SKIN_RULE = "skin"
MIND_RULE_PREFIX = "mind:"
DEFAULT_BODY_TIME = "19:00"
DEFAULT_SKIN_TIME = "21:00"
DEFAULT_MIND_TIME = "20:30"
FIRING_WINDOW_MINUTES = 2

# Local durable store keys.
SLICE_PLANNER = "plannerTasks"
SLICE_BODY = "bodyTasks"
SLICE_SKIN = "skinTasks"
SLICE_SKIN_SESSIONS = "skinSessions"
SLICE_MIND = "mindSubjects"
SLICE_REMINDERS = "reminderRules"
SLICE_WEIGHT = "weightInput"
SLICE_PROGRESS = "muscleProgress"
ALL_SLICES = [
    SLICE_PLANNER,
    SLICE_BODY,
    SLICE_SKIN,
    SLICE_SKIN_SESSIONS,
    SLICE_MIND,
    SLICE_REMINDERS,
    SLICE_WEIGHT,
    SLICE_PROGRESS,
]
DAY_KEY_STORAGE = {
    "body": "bodyDayKey",
    "skin": "skinDayKey",
    "mind": "mindDayKey",
}
MONTH_KEY_STORAGE = "appMonthKey"

MILESTONE_SKIN_SESSION = "skin_session_completed"
