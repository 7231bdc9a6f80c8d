# config.py

# Grid and trial parameters
GRID_SIZE = 32                # Side length of the square ship grid (outer ring is always wall)
NUM_TRIALS = 5000             # Independent trials averaged by the simulation
SEED = None                   # Root seed for the per-trial random sources (None → fresh entropy)
REUSE_LAYOUT = False          # Generate one ship and reuse it for every trial

# Ship generation
DEAD_END_FRACTION = 0.5       # Fraction of dead-end neighbours opened by the loosening pass

# Localization
SIGNATURE_MODE = "count"      # "count" (closed Moore neighbours) or "pattern" (which neighbours are open)
MOVE_POLICY = "distinct"      # "distinct", "entropy" or "random"
MOVE_HISTORY_LIMIT = 1        # Recent moves that may not be repeated immediately
MAX_LOCALIZE_ITERATIONS = 512 # Move/scan iterations before localization is abandoned

# Target sensing & tracking
ALPHA = 0.1                   # Ping sensitivity: P(ping) = exp(-ALPHA * (d - 1))
LOOKAHEAD = 9                 # Max moves in a planned path (M)
PINGS_PER_CYCLE = 3           # Pings before each plan (N)
MOVES_PER_CYCLE = None        # Path steps executed per cycle (None → the whole planned path)
MAX_TRACK_CYCLES = 512        # Ping/plan/move cycles before tracking is abandoned
TIE_BREAK = "fifo"            # Planner tie-break among equal scores: "fifo" or "random"
PLANNER_PRUNE = True          # Skip branches that cannot beat the best finished path

# Orchestration
MAX_TRIAL_RETRIES = 3         # Fresh attempts after an exhausted localization
EXCLUDE_CAPPED = False        # Leave non-convergent tracking runs out of the average
