"""
Scheduling Domain - Lift board

Reconciles repair lift occupancy, active repair work, worker assignments and
pending appointments into one board snapshot, and owns every write to
lift_assignments.

Structure:
```
liftboard/domain/scheduling/
├── schemas.py      # Board views, assignment payloads
├── repository.py   # Lift, order, item, assignment and appointment queries
├── workers.py      # Active orders and active workers per order
├── occupancy.py    # On-lift / waiting partition
├── service.py      # ScheduleBoardService, LiftAssignmentService
├── exceptions.py   # StoreUnavailable, NotFound, DegradedJoin
└── router.py       # /schedule endpoints
```

Endpoints:
- GET /schedule/data - Board snapshot
- POST /schedule/assignments - Assign or move an order (upsert on order)
- PUT /schedule/assignments/{assignment_id} - Update assignment fields
- PUT /schedule/assignments/{assignment_id}/remove - Take an order off its lift
- PUT /schedule/assignments/{assignment_id}/parts-wait - Parts-wait flag and window
"""
