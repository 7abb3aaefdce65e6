# Mission Control: quick-capture parsing and the unified task/note/link document
#
# Components:
#   schema.py      - Entity model (Task, Note, Link, ActivityEntry, Settings, Document)
#   capture.py     - Quick-capture parser and capture service
#   link_titles.py - Bounded remote <title> fetcher for captured links
#   repository.py  - Whole-document persistence (JSON file, in-memory)
#   store.py       - Document store: id allocation, CRUD, comments, tags, settings
#   activity.py    - Bounded newest-first activity log
#   temporal.py    - Today / overdue / upcoming task windows
#   search.py      - Cross-entity substring and tag search
#   config.py      - YAML + environment configuration
#   server.py      - Flask JSON API
