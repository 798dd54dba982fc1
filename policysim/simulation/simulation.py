"""Simulation wrapper used by the UI

Converts UI inputs into a comparison session and forwards navigation to the
CompareController. Everything that happens is written to `self.log` so the
UI can show it in its log pane.
"""
from typing import List, Optional

from policysim.core.compare_controller import Comparison, CompareController, ComparisonStep, describe_step
from policysim.core.config import MAX_CAPACITY, MAX_SEQUENCE_LENGTH
from policysim.core.sequence import SCENARIOS, parse_sequence


class Simulation:
    def __init__(self, ui, seed: Optional[int] = None):
        self.ui = ui
        self.seed = seed
        self.controller: Optional[CompareController] = None
        self.log: List[str] = []

    def _append_log(self, text: str):
        # skip immediate duplicates (e.g. repeated boundary messages)
        if self.log and self.log[-1] == text:
            return
        self.log.append(text)

    def _read_capacity(self) -> int:
        capacity = int(self.ui.capacity.get())
        if capacity > MAX_CAPACITY:
            self._append_log(f"Capacity {capacity} clamped to {MAX_CAPACITY}")
            capacity = MAX_CAPACITY
        return capacity

    def _read_sequence(self) -> Optional[list]:
        # An explicit input string wins; otherwise use the selected scenario;
        # otherwise None so the controller generates a random sequence.
        text = self.ui.input.get().strip()
        if text:
            keys = parse_sequence(text)
        else:
            scen = getattr(self.ui, 'scenario_var', None)
            name = scen.get() if scen is not None else ''
            if not name:
                return None
            if name not in SCENARIOS:
                self._append_log(f"Unknown scenario '{name}', using a random sequence")
                return None
            keys = list(SCENARIOS[name])
        if len(keys) > MAX_SEQUENCE_LENGTH:
            self._append_log(f"Input truncated to first {MAX_SEQUENCE_LENGTH} accesses (too many tokens)")
            keys = keys[:MAX_SEQUENCE_LENGTH]
        return keys

    def _read_length(self) -> int:
        length = int(self.ui.sequence_length.get())
        if length > MAX_SEQUENCE_LENGTH:
            self._append_log(f"Sequence length {length} clamped to {MAX_SEQUENCE_LENGTH}")
            length = MAX_SEQUENCE_LENGTH
        return length

    def run_simulation(self) -> List[ComparisonStep]:
        """Build a fresh comparison from the UI values and return its full trace.

        Bad parameters are reported in the log and an empty list is returned.
        """
        try:
            controller = CompareController(
                policy_a=self.ui.policy_a.get(),
                policy_b=self.ui.policy_b.get(),
                capacity=self._read_capacity(),
                sequence_length=self._read_length(),
                custom_sequence=self._read_sequence(),
                seed=self.seed,
            )
        except ValueError as e:
            self._append_log(f"Error building comparison: {e}")
            return []
        self.controller = controller
        names = controller.get_policy_names()
        seq = ', '.join(str(k) for k in controller.get_access_sequence())
        self._append_log(f"Comparing {names[0]} vs {names[1]} (capacity {controller.get_capacity()}) on: {seq}")
        return controller.get_step_history()

    def _ensure_controller(self) -> bool:
        if self.controller is None:
            self.run_simulation()
        return self.controller is not None

    def _log_current(self):
        data = self.controller.get_current_step_data()
        if data is None:
            self._append_log("Before first access")
        else:
            self._append_log(describe_step(data, self.controller.get_policy_names()))

    def step_forward(self) -> bool:
        if not self._ensure_controller():
            return False
        if not self.controller.step_forward():
            self._append_log("Already at the last access")
            return False
        self._log_current()
        return True

    def step_backward(self) -> bool:
        if not self._ensure_controller():
            return False
        if not self.controller.step_backward():
            self._append_log("Already before the first access")
            return False
        self._log_current()
        return True

    def jump_to_step(self, step: int) -> bool:
        if not self._ensure_controller():
            return False
        if not self.controller.jump_to_step(step):
            self._append_log(f"Step {step} is out of range")
            return False
        self._log_current()
        return True

    def reset(self):
        if self.controller is not None:
            self.controller.reset()
            self._append_log("Rewound to before the first access")

    def apply_policies(self) -> bool:
        if not self._ensure_controller():
            return False
        try:
            self.controller.update_policies(self.ui.policy_a.get(), self.ui.policy_b.get())
        except ValueError as e:
            self._append_log(f"Error changing policies: {e}")
            return False
        names = self.controller.get_policy_names()
        self._append_log(f"Policies changed to {names[0]} vs {names[1]}")
        return True

    def apply_capacity(self) -> bool:
        if not self._ensure_controller():
            return False
        try:
            self.controller.set_capacity(self._read_capacity())
        except ValueError as e:
            self._append_log(f"Error changing capacity: {e}")
            return False
        self._append_log(f"Capacity changed to {self.controller.get_capacity()}")
        return True

    def new_random_sequence(self) -> bool:
        if not self._ensure_controller():
            return False
        try:
            self.controller.generate_new_sequence(self._read_length())
        except ValueError as e:
            self._append_log(f"Error generating sequence: {e}")
            return False
        seq = ', '.join(str(k) for k in self.controller.get_access_sequence())
        self._append_log(f"New sequence: {seq}")
        return True

    def apply_custom_sequence(self) -> bool:
        if not self._ensure_controller():
            return False
        keys = parse_sequence(self.ui.input.get())
        if not keys:
            self._append_log("No accesses to simulate")
            return False
        if len(keys) > MAX_SEQUENCE_LENGTH:
            self._append_log(f"Input truncated to first {MAX_SEQUENCE_LENGTH} accesses (too many tokens)")
            keys = keys[:MAX_SEQUENCE_LENGTH]
        self.controller.set_custom_sequence(keys)
        self._append_log(f"Custom sequence loaded ({len(keys)} accesses)")
        return True

    def current_comparison(self) -> Optional[Comparison]:
        if self.controller is None:
            return None
        return self.controller.get_current_comparison()
