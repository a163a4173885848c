"""Device emulation presets."""

from typing import Dict

from .models import Device

_IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)
_IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)
_ANDROID_UA = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
_GALAXY_UA = (
    "Mozilla/5.0 (Linux; Android 13; SM-S901B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)

DEVICES: Dict[str, Device] = {
    device.name: device
    for device in (
        Device(name="iPhone SE", user_agent=_IPHONE_UA, width=375, height=667,
               device_scale_factor=2, mobile=True),
        Device(name="iPhone 12", user_agent=_IPHONE_UA, width=390, height=844,
               device_scale_factor=3, mobile=True),
        Device(name="iPhone 14 Pro Max", user_agent=_IPHONE_UA, width=430, height=932,
               device_scale_factor=3, mobile=True),
        Device(name="iPad", user_agent=_IPAD_UA, width=810, height=1080,
               device_scale_factor=2, mobile=True),
        Device(name="iPad Pro 11", user_agent=_IPAD_UA, width=834, height=1194,
               device_scale_factor=2, mobile=True),
        Device(name="Pixel 7", user_agent=_ANDROID_UA, width=412, height=915,
               device_scale_factor=2.625, mobile=True),
        Device(name="Galaxy S22", user_agent=_GALAXY_UA, width=360, height=780,
               device_scale_factor=3, mobile=True),
    )
}
