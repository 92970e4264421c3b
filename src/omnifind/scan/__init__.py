"""Volume enumeration, tree walking and result fan-in."""
