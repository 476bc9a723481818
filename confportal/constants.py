ROLES = ("general", "organizer", "admin")
DEFAULT_ROLE = "general"

APPROVAL_FILTERS = ("approved", "pending")
SHOWED_UP_FILTERS = ("true", "false")

PER_PAGE_CHOICES = (10, 25, 50, 100)
DEFAULT_PER_PAGE = 10

EDITABLE_USER_FIELDS = ("first_name", "last_name", "affiliation", "role", "showed_up")
