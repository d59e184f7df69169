# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for one part of the Q&A domain:
#
#   question_service     : question CRUD, feed pagination, accept-answer
#   answer_service       : answer CRUD and parent-question upkeep
#   vote_service         : signed vote deltas, no self-votes
#   notification_service : single/bulk notifications, read state
#   tag_service          : popular-tag aggregation
#   user_service         : accounts, profiles, moderation, stats
#   guards, serializers  : shared access checks and ORM → dict helpers
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
