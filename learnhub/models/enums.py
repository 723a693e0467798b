import enum

class ContentType(str, enum.Enum):
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"

class QuestionKind(str, enum.Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE" # Four fixed options, answer is the option index 0-3
    TRUE_FALSE = "TRUE_FALSE"           # Answer is a boolean

class NotificationType(str, enum.Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"

class UserRole(str, enum.Enum):
    LEARNER = "Learner"
    ADMIN = "Admin"

# Using `values_callable=lambda obj: [e.value for e in obj]` in the models makes SAEnum
# store the string values, which keeps the columns portable between PostgreSQL and SQLite.
