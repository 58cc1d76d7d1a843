"""
simulation/circuit_validator.py

Pre-simulation circuit checks. Nothing here blocks a tick: the engine
solves any topology. The CLI and lessons use the results to explain why a
circuit does nothing.
"""


def validate_circuit(model):
    """
    Validate a circuit before simulation.

    Args:
        model: CircuitModel

    Returns:
        (is_valid, errors, warnings) where:
            is_valid: bool, False if any errors found
            errors: list[str], problems that leave nothing to simulate
            warnings: list[str], non-blocking issues
    """
    errors = []
    warnings = []
    components = model.components

    # 1. Circuit must have components (beyond just Ground)
    non_ground = [c for c in components.values() if c.component_type != 'Ground']
    if not non_ground:
        errors.append("Circuit has no components. Add at least one component to simulate.")
        return False, errors, warnings

    # 2. Floating pins exclude their device from the solve
    for comp in non_ground:
        floating = [pin.name for pin in comp.pins if pin.node_id is None]
        if len(floating) == comp.get_pin_count():
            warnings.append(
                f"{comp.component_id} ({comp.component_type}) has no connections "
                f"and is ignored by the simulation."
            )
        elif floating:
            warnings.append(
                f"{comp.component_id} ({comp.component_type}) has unconnected "
                f"pin(s): {', '.join(floating)}. It is ignored until fully wired."
            )

    # 3. Sources and reference
    if not any(c.component_type == 'Voltage Source' for c in components.values()):
        warnings.append(
            "Circuit has no voltage source. "
            "All voltages and currents will stay at zero."
        )

    if not any(c.component_type == 'Ground' for c in components.values()):
        warnings.append(
            "Circuit has no ground. A reference node is picked automatically "
            "(the negative side of the first voltage source)."
        )

    # 4. Topology bookkeeping
    for problem in model.topology_problems():
        errors.append(f"Inconsistent topology: {problem}")

    is_valid = len(errors) == 0
    return is_valid, errors, warnings
