"""Hardware controls: dismiss button and vibration motor."""

import threading
from typing import Callable, Optional

from ..config import BUTTON_GPIO, DEBUG, HAPTIC_GPIO, HAPTIC_PULSE_LENGTH

# Hardware available flag
HARDWARE_AVAILABLE = False

try:
    from gpiozero import Button, PWMOutputDevice
    HARDWARE_AVAILABLE = True
except ImportError as e:
    print(f"[Hardware] Libraries not available: {e}")


class HapticMotor:
    """Vibration motor driven by PWM; strength is the duty cycle (0-1)."""

    def __init__(self, pin: int = HAPTIC_GPIO, pulse_length: float = HAPTIC_PULSE_LENGTH):
        self.pulse_length = pulse_length
        self._device: Optional["PWMOutputDevice"] = None
        self._off_timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

        if not HARDWARE_AVAILABLE:
            return

        try:
            self._device = PWMOutputDevice(pin)
            print(f"[Hardware] Vibration motor initialized on GPIO {pin}")
        except Exception as e:
            print(f"[Hardware] Vibration motor not available: {e}")
            self._device = None

    def pulse(self, strength: float) -> bool:
        """Run the motor at ``strength`` for one pulse length."""
        if self._device is None:
            if DEBUG:
                print(f"[Hardware] (no motor) pulse at {strength:.1f}")
            return False

        with self._lock:
            if self._off_timer is not None:
                self._off_timer.cancel()
            try:
                self._device.value = max(0.0, min(1.0, strength))
            except Exception as e:
                print(f"[Hardware] Error driving motor: {e}")
                return False
            self._off_timer = threading.Timer(self.pulse_length, self._off)
            self._off_timer.daemon = True
            self._off_timer.start()
        return True

    def _off(self):
        with self._lock:
            self._off_timer = None
            if self._device is not None:
                self._device.off()

    def close(self):
        with self._lock:
            if self._off_timer is not None:
                self._off_timer.cancel()
                self._off_timer = None
            if self._device is not None:
                self._device.close()
                self._device = None

    @property
    def is_available(self) -> bool:
        return self._device is not None


class HardwareController:
    """Physical dismiss button next to the grill."""

    def __init__(self, on_button_press: Callable[[], None], pin: int = BUTTON_GPIO):
        """
        Initialize hardware controller.

        Args:
            on_button_press: Callback function when button is pressed
            pin: BCM pin the button pulls to ground
        """
        self._on_button_press = on_button_press
        self._pin = pin
        self._button: Optional["Button"] = None

        if not HARDWARE_AVAILABLE:
            print("[Hardware] Hardware libraries not available, running in software-only mode")
            return

        try:
            # Button connects GPIO to GND when pressed
            self._button = Button(pin, pull_up=True, bounce_time=0.2)
            print(f"[Hardware] Button initialized on GPIO {pin}")
        except Exception as e:
            print(f"[Hardware] Error initializing hardware: {e}")
            self._button = None

    def _handle_button_press(self):
        """Handle button press event."""
        print("[Hardware] Dismiss button pressed")
        if self._on_button_press:
            self._on_button_press()

    def start(self):
        if self._button is None:
            print("[Hardware] No button available")
            return
        self._button.when_pressed = self._handle_button_press
        print("[Hardware] Hardware controller started")

    def stop(self):
        if self._button is not None:
            self._button.close()
            self._button = None
        print("[Hardware] Hardware controller stopped")

    @property
    def is_available(self) -> bool:
        return self._button is not None
