"""ABOUTME: Deterministic sample-and-hold source for the RANDOM waveform.
ABOUTME: Hashes (step, seed) through a sine so the same inputs always give the same value."""

import math

# One cycle is chopped into this many held values
STEPS_PER_CYCLE = 16

# Peak magnitude of a random step
RANDOM_AMPLITUDE = 0.9

# Hash constants. STEP_SCALE advances ~162 degrees per step (mod 2*pi),
# so neighbouring steps land far apart on the sine.
STEP_SCALE = 78.233
SEED_SCALE = 12.9898
HASH_OFFSET = 0.5


def random_step(step_index: int, seed: int = 0) -> float:
    """
    Value held during one random step.

    Args:
        step_index: Step within the cycle (0-15, other integers are accepted)
        seed: Cycle seed; changing it gives a new set of 16 values

    Returns:
        Value in [-0.9, 0.9]
    """
    return math.sin(step_index * STEP_SCALE + seed * SEED_SCALE + HASH_OFFSET) * RANDOM_AMPLITUDE


def step_for_phase(phase: float) -> int:
    """Map a phase in [0, 1] to its step index (phase 1.0 belongs to the last step)."""
    step = int(math.floor(phase * STEPS_PER_CYCLE))
    return max(0, min(STEPS_PER_CYCLE - 1, step))


def sample_random(phase: float, seed: int = 0) -> float:
    """Classic sample-and-hold: the value of the step containing `phase`."""
    return random_step(step_for_phase(phase), seed)


def _smoothstep(t: float) -> float:
    return t * t * (3.0 - 2.0 * t)


def sample_random_with_slew(phase: float, slew_amount: float, seed: int = 0) -> float:
    """
    Sample-and-hold with a smoothed transition into each new step.

    The first `slew_amount / 127` of every step eases from the previous
    step's value to the current one with a smoothstep curve. Step 0 eases
    from the last step of the previous cycle (seed - 1), so consecutive
    cycles join without a jump the hardware would not make.

    Args:
        phase: Position in the cycle (0.0-1.0)
        slew_amount: 0-127; 0 degenerates to `sample_random`
        seed: Cycle seed

    Returns:
        Value in [-0.9, 0.9]
    """
    step = step_for_phase(phase)
    current = random_step(step, seed)

    slew_fraction = max(0.0, min(1.0, slew_amount / 127.0))
    if slew_fraction <= 0.0:
        return current

    position_in_step = phase * STEPS_PER_CYCLE - step
    if position_in_step >= slew_fraction:
        return current

    if step == 0:
        previous = random_step(STEPS_PER_CYCLE - 1, seed - 1)
    else:
        previous = random_step(step - 1, seed)

    t = max(0.0, position_in_step / slew_fraction)
    return previous + (current - previous) * _smoothstep(t)
