"""
Scheduling Domain

Slot availability for bookable services.

Structure:
```
domain/scheduling/
├── time_calculator.py      # HH:MM parsing, arithmetic and display labels
├── availability_service.py # Slot generation, past-slot filter, booked marking
├── service.py              # Loads service schedule + booked intervals for a date
└── router.py               # GET /scheduling/availability
```

The calculator modules are pure and never touch the database; only
``service.py`` reads persisted state.
"""
