import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///arquiz.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # Quiz content: closed set of selectable services and optional JSON question file
    SERVICE_IDS = [s.strip() for s in os.environ.get('SERVICE_IDS', 's3,lambda,ec2').split(',') if s.strip()]
    QUESTIONS_FILE = os.environ.get('QUESTIONS_FILE')
    # Choreography timers (milliseconds)
    WELCOME_DELAY_MS = int(os.environ.get('WELCOME_DELAY_MS', '1500'))
    WELCOME_DURATION_MS = int(os.environ.get('WELCOME_DURATION_MS', '3000'))
    FEEDBACK_DURATION_MS = int(os.environ.get('FEEDBACK_DURATION_MS', '2000'))
    NEXT_QUESTION_DELAY_MS = int(os.environ.get('NEXT_QUESTION_DELAY_MS', '500'))
    MESSAGE_DURATION_MS = int(os.environ.get('MESSAGE_DURATION_MS', '2000'))
    CONFETTI_DURATION_MS = int(os.environ.get('CONFETTI_DURATION_MS', '3000'))
    COMPLETION_PANEL_DELAY_MS = int(os.environ.get('COMPLETION_PANEL_DELAY_MS', '2000'))
    RESTART_DELAY_MS = int(os.environ.get('RESTART_DELAY_MS', '500'))
    LOADING_SCREEN_MS = int(os.environ.get('LOADING_SCREEN_MS', '2000'))
    # Ignore a marker "lost" followed by "found" within this window. 0 disables.
    MARKER_DEBOUNCE_MS = int(os.environ.get('MARKER_DEBOUNCE_MS', '300'))
    # How often the background worker fires due timers
    TICK_INTERVAL_MS = int(os.environ.get('TICK_INTERVAL_MS', '50'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Where analytics records go: database, console or none
    EVENT_SINK = os.environ.get('EVENT_SINK', 'database')
    USE_VIRTUAL_CLOCK = False
    # Browser origins allowed for CORS and Socket.IO, comma-separated. Empty means same-origin only.
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '').split(',') if o.strip()]
    # End a session this long after its last socket leaves, or after this much idle time with none
    SESSION_GRACE_SEC = int(os.environ.get('SESSION_GRACE_SEC', '30'))
    SESSION_IDLE_TTL_SEC = int(os.environ.get('SESSION_IDLE_TTL_SEC', '1800'))
