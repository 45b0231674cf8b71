"""Built-in driver catalog.

Static metadata for every driver a graph node can reference: ports,
parameters and the MicroPython template rendered for each node.  Templates
use the placeholder grammar implemented by :mod:`orbita.transpile.template`:

- ``{{var_name}}``: the node's unique symbol prefix.
- ``{{<parameter>}}``: the node's resolved parameter value as a literal.
- ``{{input_<port>}}``: the producer expression wired into ``<port>``.
- ``{{#if <name>}} ... {{else}} ... {{/if}}``: render-time branching on
  input connectivity (``input_<port>``) or a parameter's truthiness.
- ``{{<param> == "x" ? "a" : "b"}}``: render-time choice between literals.

Each output port ``p`` is exposed as ``<var_name>_p`` and is initialized in
the setup fragment so consumers can read it from the first cycle on.

Pin defaults follow the ESP32 wiring of the Pion CanSat kit.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Final

from orbita.drivers.spec import (
    CodeTemplate,
    DataKind,
    DriverCategory,
    DriverSpec,
    DynamicParameterGroup,
    ParameterSpec,
    PortSpec,
)

_RESERVED_NAMES = frozenset({"var_name"})
_RESERVED_PREFIX = "input_"


# ---------------------------------------------------------------------------
# Parameter and port shorthands
# ---------------------------------------------------------------------------


def _number(
    id: str,
    label: str,
    default: float,
    minimum: float | None = None,
    maximum: float | None = None,
) -> ParameterSpec:
    return ParameterSpec(id, label, "number", default, minimum=minimum, maximum=maximum)


def _text(id: str, label: str, default: str) -> ParameterSpec:
    return ParameterSpec(id, label, "string", default)


def _flag(id: str, label: str, default: bool = False) -> ParameterSpec:
    return ParameterSpec(id, label, "boolean", default)


def _select(id: str, label: str, default: str, *options: str, raw: bool = False) -> ParameterSpec:
    return ParameterSpec(id, label, "select", default, options=tuple(options), raw=raw)


def _operator(id: str, label: str, *extra: str) -> ParameterSpec:
    return _select(id, label, ">", ">", "<", ">=", "<=", *extra, raw=True)


def _pin(id: str, label: str, default: int, minimum: int = 0, maximum: int = 39) -> ParameterSpec:
    return _number(id, label, default, minimum, maximum)


def _interval(default: int, minimum: int, maximum: int = 60000) -> ParameterSpec:
    return _number("interval", "Interval (ms)", default, minimum, maximum)


def _i2c_parameters(address: str, interval: ParameterSpec) -> tuple[ParameterSpec, ...]:
    return (
        _pin("sda", "SDA", 21),
        _pin("scl", "SCL", 22),
        _text("address", "I2C address", address),
        interval,
    )


def _inp(id: str, label: str, kind: DataKind = DataKind.ANY) -> PortSpec:
    return PortSpec(id, label, kind)


def _out(id: str, label: str, kind: DataKind = DataKind.NUMBER) -> PortSpec:
    return PortSpec(id, label, kind)


_I2C_IMPORTS = ("from machine import Pin, I2C", "import time")
_ADC_IMPORTS = ("from machine import ADC, Pin", "import time")
_PWM_IMPORTS = ("from machine import Pin, PWM", "import time")


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_DATA_GENERATOR = CodeTemplate(
    imports=("import urandom", "import time"),
    setup="""\
{{var_name}}_last = time.ticks_ms()
{{var_name}}_value = {{min}}
""",
    loop="""\
{{var_name}}_enabled = True
{{#if input_start}}
{{var_name}}_enabled = bool({{input_start}})
{{/if}}
if {{var_name}}_enabled and time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    {{var_name}}_value = urandom.uniform({{min}}, {{max}})
    {{var_name}}_last = time.ticks_ms()
""",
)

_DHT = CodeTemplate(
    imports=("from machine import Pin", "import dht", "import time"),
    setup="""\
{{var_name}}_sensor = dht.DHT{{sensor_type}}(Pin({{pin}}))
{{var_name}}_last = 0
{{var_name}}_temperature = 0
{{var_name}}_humidity = 0
""",
    loop="""\
{{var_name}}_enabled = True
{{#if input_enable}}
{{var_name}}_enabled = bool({{input_enable}})
{{/if}}
if {{var_name}}_enabled and time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    try:
        {{var_name}}_sensor.measure()
        {{var_name}}_temperature = {{var_name}}_sensor.temperature()
        {{var_name}}_humidity = {{var_name}}_sensor.humidity()
    except OSError as e:
        print('DHT error:', e)
    {{var_name}}_last = time.ticks_ms()
""",
)

_BME280 = CodeTemplate(
    imports=("from machine import Pin, I2C", "import bme280", "import time"),
    setup="""\
{{var_name}}_i2c = I2C(0, sda=Pin({{sda}}), scl=Pin({{scl}}))
{{var_name}}_sensor = bme280.BME280(i2c={{var_name}}_i2c, address=int({{address}}, 16))
{{var_name}}_last = 0
{{var_name}}_temperature = 0
{{var_name}}_humidity = 0
{{var_name}}_pressure = 0
""",
    loop="""\
if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    try:
        t, p, h = {{var_name}}_sensor.read_compensated_data()
        {{var_name}}_temperature = t / 100
        {{var_name}}_pressure = p / 25600
        {{var_name}}_humidity = h / 1024
    except OSError as e:
        print('BME280 error:', e)
    {{var_name}}_last = time.ticks_ms()
""",
)

_SHT30 = CodeTemplate(
    imports=_I2C_IMPORTS,
    setup="""\
{{var_name}}_i2c = I2C(0, sda=Pin({{sda}}), scl=Pin({{scl}}))
{{var_name}}_addr = int({{address}}, 16)
{{var_name}}_last = 0
{{var_name}}_temperature = 0
{{var_name}}_humidity = 0
""",
    loop="""\
if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    try:
        {{var_name}}_i2c.writeto({{var_name}}_addr, b'\\x2C\\x06')
        time.sleep_ms(20)
        data = {{var_name}}_i2c.readfrom({{var_name}}_addr, 6)
        raw_t = data[0] << 8 | data[1]
        raw_h = data[3] << 8 | data[4]
        {{var_name}}_temperature = -45 + 175 * (raw_t / 65535)
        {{var_name}}_humidity = 100 * (raw_h / 65535)
    except OSError as e:
        print('SHT error:', e)
    {{var_name}}_last = time.ticks_ms()
""",
)

_CCS811 = CodeTemplate(
    imports=_I2C_IMPORTS,
    setup="""\
{{var_name}}_i2c = I2C(0, sda=Pin({{sda}}), scl=Pin({{scl}}))
{{var_name}}_addr = int({{address}}, 16)
{{var_name}}_last = 0
{{var_name}}_eco2 = 0
{{var_name}}_tvoc = 0
{{var_name}}_i2c.writeto_mem({{var_name}}_addr, 0xF4, b'\\x00')
time.sleep_ms(100)
{{var_name}}_i2c.writeto_mem({{var_name}}_addr, 0x01, b'\\x10')
""",
    loop="""\
if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    try:
        status = {{var_name}}_i2c.readfrom_mem({{var_name}}_addr, 0x00, 1)
        if status[0] & 0x08:
            data = {{var_name}}_i2c.readfrom_mem({{var_name}}_addr, 0x02, 8)
            {{var_name}}_eco2 = (data[0] << 8) | data[1]
            {{var_name}}_tvoc = (data[2] << 8) | data[3]
    except OSError as e:
        print('CCS811 error:', e)
    {{var_name}}_last = time.ticks_ms()
""",
)

_IMU = CodeTemplate(
    imports=_I2C_IMPORTS,
    setup="""\
{{var_name}}_i2c = I2C(0, sda=Pin({{sda}}), scl=Pin({{scl}}))
{{var_name}}_addr = int({{address}}, 16)
{{var_name}}_last = 0
{{var_name}}_accel_x = {{var_name}}_accel_y = {{var_name}}_accel_z = 0
{{var_name}}_gyro_x = {{var_name}}_gyro_y = {{var_name}}_gyro_z = 0
{{var_name}}_i2c.writeto_mem({{var_name}}_addr, 0x6B, b'\\x00')


def {{var_name}}_signed(hi, lo):
    value = (hi << 8) | lo
    return value - 65536 if value > 32767 else value
""",
    loop="""\
if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    try:
        data = {{var_name}}_i2c.readfrom_mem({{var_name}}_addr, 0x3B, 14)
        {{var_name}}_accel_x = {{var_name}}_signed(data[0], data[1]) / 16384
        {{var_name}}_accel_y = {{var_name}}_signed(data[2], data[3]) / 16384
        {{var_name}}_accel_z = {{var_name}}_signed(data[4], data[5]) / 16384
        {{var_name}}_gyro_x = {{var_name}}_signed(data[8], data[9]) / 131
        {{var_name}}_gyro_y = {{var_name}}_signed(data[10], data[11]) / 131
        {{var_name}}_gyro_z = {{var_name}}_signed(data[12], data[13]) / 131
    except OSError as e:
        print('IMU error:', e)
    {{var_name}}_last = time.ticks_ms()
""",
)

_LDR = CodeTemplate(
    imports=_ADC_IMPORTS,
    setup="""\
{{var_name}}_adc = ADC(Pin({{pin}}))
{{var_name}}_adc.atten(ADC.ATTN_11DB)
{{var_name}}_last = 0
{{var_name}}_luminosity = 0
""",
    loop="""\
if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    {{var_name}}_luminosity = {{var_name}}_adc.read()
    {{var_name}}_last = time.ticks_ms()
""",
)

_VBAT = CodeTemplate(
    imports=_ADC_IMPORTS,
    setup="""\
{{var_name}}_adc = ADC(Pin({{pin}}))
{{var_name}}_adc.atten(ADC.ATTN_11DB)
{{var_name}}_last = 0
{{var_name}}_voltage = 0
""",
    loop="""\
if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    {{var_name}}_voltage = ({{var_name}}_adc.read() / 4095) * 3.3 * {{divider_ratio}}
    {{var_name}}_last = time.ticks_ms()
""",
)

_LED = CodeTemplate(
    imports=_PWM_IMPORTS,
    setup="""\
{{var_name}}_led = Pin({{pin}}, Pin.OUT)
{{var_name}}_pwm_r = PWM(Pin({{pin_r}}), freq=1000, duty=0)
{{var_name}}_pwm_g = PWM(Pin({{pin_g}}), freq=1000, duty=0)
{{var_name}}_pwm_b = PWM(Pin({{pin_b}}), freq=1000, duty=0)
{{var_name}}_colors = {
    'off': (0, 0, 0),
    'red': (1023, 0, 0),
    'green': (0, 1023, 0),
    'blue': (0, 0, 1023),
    'white': (1023, 1023, 1023),
    'purple': (1023, 0, 1023),
    'cyan': (0, 1023, 1023),
    'magenta': (1023, 0, 512),
    'yellow': (1023, 1023, 0),
    'orange': (1023, 400, 0),
}
{{var_name}}_blink_state = False
{{var_name}}_blink_last = time.ticks_ms()
{{var_name}}_blink_done = 0


def {{var_name}}_blink(interval, duty, limited, count):
    global {{var_name}}_blink_state, {{var_name}}_blink_last, {{var_name}}_blink_done
    if limited and {{var_name}}_blink_done >= count:
        return False
    on_time = max(1, interval * duty // 100)
    off_time = max(1, interval - on_time)
    now = time.ticks_ms()
    elapsed = time.ticks_diff(now, {{var_name}}_blink_last)
    if {{var_name}}_blink_state and elapsed >= on_time:
        {{var_name}}_blink_state = False
        {{var_name}}_blink_last = now
    elif not {{var_name}}_blink_state and elapsed >= off_time:
        {{var_name}}_blink_state = True
        {{var_name}}_blink_last = now
        {{var_name}}_blink_done += 1
    return {{var_name}}_blink_state
""",
    loop="""\
{{var_name}}_on = False
{{var_name}}_driven = False
{{var_name}}_color = {{preset_color}}
{{#if input_input}}
{{var_name}}_driven = True
{{var_name}}_value = {{input_input}}
{{#if action_alert}}
{{var_name}}_on = {{var_name}}_value {{action_alert_operator}} {{action_alert_threshold}}
{{var_name}}_color = {{action_alert_color}}
{{else}}
if isinstance({{var_name}}_value, bool):
    {{var_name}}_on = {{var_name}}_value
else:
    {{var_name}}_on = float({{var_name}}_value) != 0
{{/if}}
{{/if}}
{{#if action_rgb}}
{{var_name}}_color = {{action_rgb_preset}}
{{/if}}
{{#if action_white}}
if not {{var_name}}_driven:
    {{var_name}}_on = {{action_white_state == "on" ? "True" : "False"}}
    {{var_name}}_driven = True
{{/if}}
{{#if action_blink}}
if not {{var_name}}_driven:
    {{var_name}}_on = {{var_name}}_blink({{action_blink_interval}}, {{action_blink_duty}}, {{action_blink_count_enabled}}, {{action_blink_count}})
    {{var_name}}_driven = True
{{/if}}
{{#if blink_enabled}}
if not {{var_name}}_driven:
    {{var_name}}_on = {{var_name}}_blink({{blink_interval}}, 50, {{blink_count_enabled}}, {{blink_count}})
    {{var_name}}_driven = True
{{/if}}
{{#if action_rgb}}
if not {{var_name}}_driven:
    {{var_name}}_on = True
{{/if}}
if {{led_type}} == 'white':
    {{var_name}}_led.value(1 if {{var_name}}_on else 0)
else:
    {{var_name}}_rgb = {{var_name}}_colors.get({{var_name}}_color, (0, 0, 0)) if {{var_name}}_on else (0, 0, 0)
    {{var_name}}_pwm_r.duty({{var_name}}_rgb[0])
    {{var_name}}_pwm_g.duty({{var_name}}_rgb[1])
    {{var_name}}_pwm_b.duty({{var_name}}_rgb[2])
    {{var_name}}_led.value(0)
""",
)

_BUZZER = CodeTemplate(
    imports=_PWM_IMPORTS,
    setup="""\
{{var_name}}_pwm = PWM(Pin({{pin}}))
{{var_name}}_pwm.duty(0)
{{var_name}}_tones = {'very_high': 4500, 'high': 3000, 'normal': 2000, 'low': 1000, 'very_low': 500}
{{var_name}}_last = time.ticks_ms()
{{var_name}}_done = 0
{{var_name}}_beeped = False
""",
    loop="""\
{{var_name}}_should = False
{{var_name}}_driven = False
{{var_name}}_tone = {{tone}}
{{var_name}}_duration = {{duration}}
{{#if input_input}}
{{var_name}}_driven = True
{{var_name}}_value = {{input_input}}
{{#if action_alert}}
if {{var_name}}_value {{action_alert_operator}} {{action_alert_threshold}}:
    if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{action_alert_cooldown}}:
        {{var_name}}_should = True
        {{var_name}}_last = time.ticks_ms()
{{else}}
if isinstance({{var_name}}_value, bool):
    {{var_name}}_should = {{var_name}}_value
else:
    {{var_name}}_should = float({{var_name}}_value) != 0
{{/if}}
{{/if}}
{{#if action_beep}}
if not {{var_name}}_driven and not {{var_name}}_beeped:
    {{var_name}}_should = True
    {{var_name}}_beeped = True
    {{var_name}}_tone = {{action_beep_tone}}
    {{var_name}}_duration = {{action_beep_duration}}
{{/if}}
{{#if action_pattern}}
if not {{var_name}}_driven and {{var_name}}_done < {{action_pattern_count}}:
    if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{action_pattern_interval}}:
        {{var_name}}_should = True
        {{var_name}}_last = time.ticks_ms()
        {{var_name}}_done += 1
    {{var_name}}_tone = {{action_pattern_tone}}
    {{var_name}}_duration = {{action_pattern_duration}}
{{/if}}
{{#if repeat_enabled}}
if not {{var_name}}_driven and (not {{repeat_count_enabled}} or {{var_name}}_done < {{repeat_count}}):
    if time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{repeat_interval}}:
        {{var_name}}_should = True
        {{var_name}}_last = time.ticks_ms()
        {{var_name}}_done += 1
{{/if}}
if {{var_name}}_driven:
    {{var_name}}_done = 0
if {{var_name}}_should:
    {{var_name}}_pwm.freq({{var_name}}_tones.get({{var_name}}_tone, 2000))
    {{var_name}}_pwm.duty(512)
    time.sleep_ms({{var_name}}_duration)
    {{var_name}}_pwm.duty(0)
""",
)

_SD_LOGGER = CodeTemplate(
    imports=("from machine import Pin, SDCard", "import os", "import time"),
    setup="""\
{{var_name}}_mounted = False
try:
    {{var_name}}_sd = SDCard(slot=2, sck=Pin(18), mosi=Pin(23), miso=Pin(19), cs=Pin({{cs_pin}}))
    os.mount({{var_name}}_sd, '/sd')
    {{var_name}}_mounted = True
except OSError as e:
    print('SD mount error:', e)
{{var_name}}_last = 0
""",
    loop="""\
{{#if input_value}}
if {{var_name}}_mounted and time.ticks_diff(time.ticks_ms(), {{var_name}}_last) >= {{interval}}:
    try:
        with open('/sd/' + {{filename}}, 'a') as f:
            f.write(str({{input_value}}) + '\\n')
    except OSError as e:
        print('SD write error:', e)
    {{var_name}}_last = time.ticks_ms()
{{/if}}
""",
)

_SERVO = CodeTemplate(
    imports=("from machine import Pin, PWM",),
    setup="""\
{{var_name}}_servo = PWM(Pin({{pin}}), freq=50)
{{var_name}}_angle = {{default_angle}}
""",
    loop="""\
{{var_name}}_target = {{default_angle}}
{{#if input_temperature}}
if {{input_temperature}} {{servo_temp_operator}} {{servo_temp_threshold}}:
    {{var_name}}_target = {{servo_temp_angle}}
{{/if}}
{{#if input_value}}
{{var_name}}_span = ({{servo_value_max}} - {{servo_value_min}}) or 1
{{var_name}}_mapped = max({{servo_value_min}}, min({{input_value}}, {{servo_value_max}}))
{{var_name}}_target = int(({{var_name}}_mapped - {{servo_value_min}}) / {{var_name}}_span * 180)
{{/if}}
{{#if input_angle}}
{{var_name}}_target = int(max(0, min({{input_angle}}, 180)))
{{/if}}
{{var_name}}_servo.duty(int(40 + ({{var_name}}_target / 180) * 75))
{{var_name}}_angle = {{var_name}}_target
""",
)

_PRINT_LOG = CodeTemplate(
    loop="""\
{{#if input_value}}
print({{prefix}} + ':', {{input_value}})
{{/if}}
""",
)

_COMPARATOR = CodeTemplate(
    setup="""\
{{var_name}}_result = False
""",
    loop="""\
{{var_name}}_result = False
{{#if input_a}}
{{#if input_b}}
if {{mode}} == 'inputs':
    {{var_name}}_result = {{input_a}} {{operator}} {{input_b}}
else:
    {{var_name}}_result = ({{input_a}} {{a_operator}} {{a_threshold}}) {{combine_operator}} ({{input_b}} {{b_operator}} {{b_threshold}})
{{else}}
if {{mode}} == 'thresholds':
    {{var_name}}_result = {{input_a}} {{a_operator}} {{a_threshold}}
{{/if}}
{{else}}
{{#if input_b}}
if {{mode}} == 'thresholds':
    {{var_name}}_result = {{input_b}} {{b_operator}} {{b_threshold}}
{{/if}}
{{/if}}
{{var_name}}_result = bool({{var_name}}_result)
""",
)

_DELAY_TRIGGER = CodeTemplate(
    imports=("import time",),
    setup="""\
{{var_name}}_start = time.ticks_ms()
{{var_name}}_ready = False
""",
    loop="""\
{{var_name}}_enabled = True
{{#if input_start}}
{{var_name}}_enabled = bool({{input_start}})
{{/if}}
if not {{var_name}}_enabled:
    {{var_name}}_ready = False
    {{var_name}}_start = time.ticks_ms()
elif not {{var_name}}_ready and time.ticks_diff(time.ticks_ms(), {{var_name}}_start) >= {{delay_ms}}:
    {{var_name}}_ready = True
""",
)

_SEQUENCE_TIMER = CodeTemplate(
    imports=("import time",),
    setup="""\
{{var_name}}_steps = [
    (s, d)
    for (s, d) in (
        ({{step1_state}}, {{step1_duration}}),
        ({{step2_state}}, {{step2_duration}}),
        ({{step3_state}}, {{step3_duration}}),
        ({{step4_state}}, {{step4_duration}}),
    )
    if d > 0
]
{{var_name}}_index = 0
{{var_name}}_last = time.ticks_ms()
{{var_name}}_started = False
{{var_name}}_state = False
{{var_name}}_step = 0
""",
    loop="""\
{{var_name}}_active = True
{{#if input_start}}
{{var_name}}_active = bool({{input_start}})
{{/if}}
{{var_name}}_now = time.ticks_ms()
if not {{var_name}}_steps or not {{var_name}}_active:
    {{var_name}}_index = 0
    {{var_name}}_started = False
    {{var_name}}_last = {{var_name}}_now
    {{var_name}}_state = False
    {{var_name}}_step = 0
elif not {{var_name}}_started:
    if time.ticks_diff({{var_name}}_now, {{var_name}}_last) >= {{start_delay}}:
        {{var_name}}_started = True
        {{var_name}}_last = {{var_name}}_now
        {{var_name}}_state = bool({{var_name}}_steps[0][0])
        {{var_name}}_step = 1
else:
    if time.ticks_diff({{var_name}}_now, {{var_name}}_last) >= {{var_name}}_steps[{{var_name}}_index][1]:
        if {{var_name}}_index + 1 < len({{var_name}}_steps):
            {{var_name}}_index += 1
        elif {{repeat_cycle}}:
            {{var_name}}_index = 0
        {{var_name}}_last = {{var_name}}_now
    {{var_name}}_state = bool({{var_name}}_steps[{{var_name}}_index][0])
    {{var_name}}_step = {{var_name}}_index + 1
""",
)

_THRESHOLD = CodeTemplate(
    setup="""\
{{var_name}}_active = False
""",
    loop="""\
{{#if input_value}}
{{var_name}}_active = {{input_value}} {{mode == "above" ? ">" : "<"}} {{threshold}}
{{/if}}
""",
)


# ---------------------------------------------------------------------------
# Driver table
# ---------------------------------------------------------------------------

_SENSORS: tuple[DriverSpec, ...] = (
    DriverSpec(
        id="data_generator",
        name="Data generator",
        category=DriverCategory.SENSOR,
        description="Simulated numeric values, useful for testing a graph",
        inputs=(_inp("start", "Start", DataKind.BOOLEAN),),
        outputs=(_out("value", "Value"),),
        parameters=(
            _number("min", "Minimum", 0, -1000, 1000),
            _number("max", "Maximum", 100, -1000, 1000),
            _interval(1000, 100, 10000),
        ),
        template=_DATA_GENERATOR,
    ),
    DriverSpec(
        id="temperature_sensor",
        name="Temperature sensor",
        category=DriverCategory.SENSOR,
        description="DHT11/DHT22 temperature and humidity",
        inputs=(_inp("enable", "Enable", DataKind.BOOLEAN),),
        outputs=(_out("temperature", "Temperature"), _out("humidity", "Humidity")),
        parameters=(
            _pin("pin", "GPIO pin", 4),
            _select("sensor_type", "Sensor model", "11", "11", "22", raw=True),
            _interval(2000, 500),
        ),
        template=_DHT,
    ),
    DriverSpec(
        id="bme280_sensor",
        name="BME/BMP280",
        category=DriverCategory.SENSOR,
        description="Temperature, pressure and humidity over I2C (SDA21/SCL22)",
        inputs=(),
        outputs=(
            _out("temperature", "Temperature"),
            _out("humidity", "Humidity"),
            _out("pressure", "Pressure"),
        ),
        parameters=_i2c_parameters("0x76", _interval(2000, 200)),
        template=_BME280,
    ),
    DriverSpec(
        id="sht30_sensor",
        name="SHT20/31",
        category=DriverCategory.SENSOR,
        description="Temperature and humidity over I2C (SDA21/SCL22)",
        inputs=(),
        outputs=(_out("temperature", "Temperature"), _out("humidity", "Humidity")),
        parameters=_i2c_parameters("0x44", _interval(2000, 200)),
        template=_SHT30,
    ),
    DriverSpec(
        id="ccs811_sensor",
        name="CCS811",
        category=DriverCategory.SENSOR,
        description="eCO2/TVOC over I2C (SDA21/SCL22)",
        inputs=(),
        outputs=(_out("eco2", "eCO2 (ppm)"), _out("tvoc", "TVOC (ppb)")),
        parameters=_i2c_parameters("0x5A", _interval(5000, 1000)),
        template=_CCS811,
    ),
    DriverSpec(
        id="imu_mpu9250",
        name="IMU MPU9250/BMX055",
        category=DriverCategory.SENSOR,
        description="Accelerometer and gyroscope over I2C (SDA21/SCL22)",
        inputs=(),
        outputs=tuple(
            _out(f"{sensor}_{axis}", f"{sensor.capitalize()} {axis.upper()}")
            for sensor in ("accel", "gyro")
            for axis in ("x", "y", "z")
        ),
        parameters=_i2c_parameters("0x68", _interval(100, 20, 2000)),
        template=_IMU,
    ),
    DriverSpec(
        id="ldr_sensor",
        name="LDR",
        category=DriverCategory.SENSOR,
        description="Analog light level (GPIO34)",
        inputs=(),
        outputs=(_out("luminosity", "Luminosity"),),
        parameters=(_pin("pin", "ADC pin", 34, 32, 39), _interval(500, 50)),
        template=_LDR,
    ),
    DriverSpec(
        id="vbat_sensor",
        name="VBAT",
        category=DriverCategory.SENSOR,
        description="Battery voltage through a divider (GPIO35)",
        inputs=(),
        outputs=(_out("voltage", "Voltage (V)"),),
        parameters=(
            _pin("pin", "ADC pin", 35, 32, 39),
            _number("divider_ratio", "Divider ratio", 2.0, 1, 10),
            _interval(1000, 100),
        ),
        template=_VBAT,
    ),
)

_ACTUATORS: tuple[DriverSpec, ...] = (
    DriverSpec(
        id="led_output",
        name="LED",
        category=DriverCategory.ACTUATOR,
        description="Digital white LED or PWM-driven RGB LED",
        inputs=(_inp("input", "Input"),),
        outputs=(),
        parameters=(
            _select("led_type", "LED type", "white", "white", "rgb"),
            _pin("pin", "GPIO pin", 2),
            _pin("pin_r", "Red pin", 12),
            _pin("pin_g", "Green pin", 13),
            _pin("pin_b", "Blue pin", 14),
            _select(
                "preset_color",
                "Preset color",
                "red",
                "off",
                "red",
                "green",
                "blue",
                "white",
                "purple",
            ),
            _flag("blink_enabled", "Blink automatically"),
            _number("blink_interval", "Blink interval (ms)", 1000, 100, 10000),
            _flag("blink_count_enabled", "Limit blink count"),
            _number("blink_count", "Blink count", 3, 1, 100),
        ),
        template=_LED,
    ),
    DriverSpec(
        id="buzzer",
        name="Buzzer",
        category=DriverCategory.ACTUATOR,
        description="Simple tones, driven directly or by a value",
        inputs=(_inp("input", "Input"),),
        outputs=(),
        parameters=(
            _pin("pin", "GPIO pin", 25),
            _select("tone", "Tone", "normal", "very_high", "high", "normal", "low", "very_low"),
            _number("duration", "Duration (ms)", 200, 50, 2000),
            _flag("repeat_enabled", "Repeat automatically"),
            _number("repeat_interval", "Repeat interval (ms)", 2000, 100, 20000),
            _flag("repeat_count_enabled", "Limit repeat count"),
            _number("repeat_count", "Repeat count", 3, 1, 100),
        ),
        template=_BUZZER,
    ),
    DriverSpec(
        id="servo_motor",
        name="Servo motor",
        category=DriverCategory.ACTUATOR,
        description="0-180 degree servo driven by conditions or a value",
        inputs=(
            _inp("temperature", "Temperature", DataKind.NUMBER),
            _inp("value", "Generic value", DataKind.NUMBER),
            _inp("angle", "Direct angle", DataKind.NUMBER),
        ),
        outputs=(),
        parameters=(
            _pin("pin", "GPIO pin", 5),
            _number("default_angle", "Initial angle", 90, 0, 180),
        ),
        dynamic_parameters=(
            DynamicParameterGroup(
                input_id="temperature",
                parameters=(
                    _operator("servo_temp_operator", "Temperature condition"),
                    _number("servo_temp_threshold", "Temperature limit", 25, -50, 100),
                    _number("servo_temp_angle", "Angle while active", 180, 0, 180),
                ),
            ),
            DynamicParameterGroup(
                input_id="value",
                parameters=(
                    _number("servo_value_min", "Input minimum", 0, -1000, 1000),
                    _number("servo_value_max", "Input maximum", 100, -1000, 1000),
                ),
            ),
        ),
        template=_SERVO,
    ),
    DriverSpec(
        id="print_log",
        name="Console log",
        category=DriverCategory.ACTUATOR,
        description="Prints values on the serial console",
        inputs=(_inp("value", "Value"),),
        outputs=(),
        parameters=(_text("prefix", "Prefix", "DATA"),),
        template=_PRINT_LOG,
    ),
)

_COMMUNICATION: tuple[DriverSpec, ...] = (
    DriverSpec(
        id="sd_logger",
        name="SD logger",
        category=DriverCategory.COMMUNICATION,
        description="Appends values to a file on the SD card (CS15)",
        inputs=(_inp("value", "Value"),),
        outputs=(),
        parameters=(
            _pin("cs_pin", "CS pin", 15),
            _text("filename", "File", "log.csv"),
            _interval(2000, 200),
        ),
        template=_SD_LOGGER,
    ),
)

_LOGIC: tuple[DriverSpec, ...] = (
    DriverSpec(
        id="comparator",
        name="Comparator",
        category=DriverCategory.LOGIC,
        description="Compares A with B, or A/B against limits combined with AND/OR",
        inputs=(_inp("a", "A", DataKind.NUMBER), _inp("b", "B", DataKind.NUMBER)),
        outputs=(_out("result", "Result", DataKind.BOOLEAN),),
        parameters=(
            _select("mode", "Mode", "inputs", "inputs", "thresholds"),
            _operator("operator", "Operator", "==", "!="),
            _operator("a_operator", "Operator A", "==", "!="),
            _number("a_threshold", "Limit A", 0),
            _operator("b_operator", "Operator B", "==", "!="),
            _number("b_threshold", "Limit B", 0),
            _select("combine_operator", "Combine limits", "and", "and", "or", raw=True),
        ),
        template=_COMPARATOR,
    ),
    DriverSpec(
        id="delay_trigger",
        name="Wait X seconds",
        category=DriverCategory.LOGIC,
        description="Turns on after an initial delay",
        inputs=(_inp("start", "Start", DataKind.BOOLEAN),),
        outputs=(_out("ready", "Ready", DataKind.BOOLEAN),),
        parameters=(_number("delay_ms", "Initial delay (ms)", 2000, 0, 600000),),
        template=_DELAY_TRIGGER,
    ),
    DriverSpec(
        id="sequence_timer",
        name="Sequencer",
        category=DriverCategory.LOGIC,
        description="Timed sequence of up to four on/off steps",
        inputs=(_inp("start", "Start", DataKind.BOOLEAN),),
        outputs=(_out("state", "State", DataKind.BOOLEAN), _out("step", "Current step")),
        parameters=(
            _number("start_delay", "Wait before starting (ms)", 0, 0, 600000),
            _flag("step1_state", "Step 1 on?", True),
            _number("step1_duration", "Step 1 duration (ms)", 1000, 100, 60000),
            _flag("step2_state", "Step 2 on?", False),
            _number("step2_duration", "Step 2 duration (ms)", 1000, 100, 60000),
            _flag("step3_state", "Step 3 on?", True),
            _number("step3_duration", "Step 3 duration (ms)", 1000, 100, 60000),
            _flag("step4_state", "Step 4 on?", False),
            _number("step4_duration", "Step 4 duration (ms)", 1000, 100, 60000),
            _flag("repeat_cycle", "Repeat forever"),
        ),
        template=_SEQUENCE_TIMER,
    ),
    DriverSpec(
        id="threshold",
        name="Threshold",
        category=DriverCategory.LOGIC,
        description="Active while the input is above (or below) a limit",
        inputs=(_inp("value", "Value", DataKind.NUMBER),),
        outputs=(_out("active", "Active", DataKind.BOOLEAN),),
        parameters=(
            _number("threshold", "Limit", 50),
            _select("mode", "Mode", "above", "above", "below"),
        ),
        template=_THRESHOLD,
    ),
)

DRIVER_CATALOG: Final[dict[str, DriverSpec]] = {
    spec.id: spec for spec in (*_SENSORS, *_ACTUATORS, *_COMMUNICATION, *_LOGIC)
}


class DriverCatalog:
    """Read-only lookup over a set of :class:`DriverSpec` entries.

    The transpiler receives a catalog explicitly, so tests can hand it a
    synthetic driver set instead of :data:`DRIVER_CATALOG`.

    Example::

        catalog = DriverCatalog.default()
        catalog.get("threshold")           # DriverSpec
        catalog.by_category(DriverCategory.SENSOR)
    """

    def __init__(self, drivers: Iterable[DriverSpec]) -> None:
        entries: dict[str, DriverSpec] = {}
        for spec in drivers:
            if spec.id in entries:
                msg = f"Duplicate driver id {spec.id!r}."
                raise ValueError(msg)
            _check_parameter_names(spec)
            entries[spec.id] = spec
        self._drivers = entries

    @classmethod
    def default(cls) -> DriverCatalog:
        """Catalog over the built-in :data:`DRIVER_CATALOG`."""
        return cls(DRIVER_CATALOG.values())

    def get(self, driver_id: str) -> DriverSpec | None:
        """The driver called *driver_id*, or ``None`` when absent."""
        return self._drivers.get(driver_id)

    def require(self, driver_id: str) -> DriverSpec:
        """Like :meth:`get` but raises ``KeyError`` for unknown ids."""
        spec = self._drivers.get(driver_id)
        if spec is None:
            msg = f"Unknown driver {driver_id!r}."
            raise KeyError(msg)
        return spec

    def by_category(self, category: DriverCategory) -> tuple[DriverSpec, ...]:
        """Every driver in *category*, in catalog order."""
        return tuple(spec for spec in self._drivers.values() if spec.category is category)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._drivers)

    def __contains__(self, driver_id: object) -> bool:
        return driver_id in self._drivers

    def __iter__(self) -> Iterator[DriverSpec]:
        return iter(self._drivers.values())

    def __len__(self) -> int:
        return len(self._drivers)

    def __repr__(self) -> str:
        return f"DriverCatalog({len(self._drivers)} drivers)"


def _check_parameter_names(spec: DriverSpec) -> None:
    seen: set[str] = set()
    for param in spec.all_parameters():
        if param.id in _RESERVED_NAMES or param.id.startswith(_RESERVED_PREFIX):
            msg = f"Driver {spec.id!r} parameter {param.id!r} clashes with a reserved placeholder."
            raise ValueError(msg)
        if param.id in seen:
            msg = f"Driver {spec.id!r} declares parameter {param.id!r} twice."
            raise ValueError(msg)
        seen.add(param.id)
    for group in spec.dynamic_parameters:
        if spec.input(group.input_id) is None:
            msg = (
                f"Driver {spec.id!r} gates dynamic parameters on unknown input "
                f"{group.input_id!r}."
            )
            raise ValueError(msg)
