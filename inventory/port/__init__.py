from . import outbox, repository, unit_of_work
