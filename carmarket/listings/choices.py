"""Vehicle attribute catalogs shared by models, filters and the options endpoint"""

BRANDS = [
    'Audi', 'BMW', 'Chevrolet', 'Citroen', 'Dacia', 'Fiat', 'Ford', 'Honda',
    'Hyundai', 'Kia', 'Mercedes', 'Nissan', 'Opel', 'Peugeot', 'Renault',
    'Seat', 'Skoda', 'Toyota', 'Volkswagen', 'Volvo',
]

FUEL_TYPE_CHOICES = [
    ('petrol', 'Petrol'),
    ('diesel', 'Diesel'),
    ('lpg', 'LPG'),
    ('electric', 'Electric'),
    ('hybrid', 'Hybrid'),
]

TRANSMISSION_CHOICES = [
    ('manual', 'Manual'),
    ('automatic', 'Automatic'),
    ('semi_automatic', 'Semi-automatic'),
]

BODY_TYPE_CHOICES = [
    ('sedan', 'Sedan'),
    ('hatchback', 'Hatchback'),
    ('station_wagon', 'Station Wagon'),
    ('suv', 'SUV'),
    ('crossover', 'Crossover'),
    ('coupe', 'Coupe'),
    ('convertible', 'Convertible'),
    ('van', 'Van'),
    ('pickup', 'Pickup'),
]

CONDITION_CHOICES = [
    ('new', 'New'),
    ('used', 'Used'),
    ('damaged', 'Damaged'),
]

COLOR_CHOICES = [
    ('white', 'White'),
    ('black', 'Black'),
    ('grey', 'Grey'),
    ('red', 'Red'),
    ('blue', 'Blue'),
    ('green', 'Green'),
    ('yellow', 'Yellow'),
    ('brown', 'Brown'),
    ('silver', 'Silver'),
]

FEATURES = [
    'ABS', 'Air Conditioning', 'Cruise Control', 'Hill Start Assist', 'ESP',
    'Lane Keeping Assist', 'Rear View Camera', 'Parking Sensors',
    'Leather Seats', 'Electric Mirrors', 'Electric Windows', 'Central Locking',
    'Rain Sensor', 'Light Sensor', 'Start/Stop', 'Sunroof',
    'Navigation', 'Bluetooth', 'USB', 'Aux',
]

DOOR_CHOICES = [
    ('2', '2'),
    ('3', '3'),
    ('4', '4'),
    ('5', '5'),
]

SHARE_PLATFORMS = ['instagram', 'facebook']


def as_options(choices):
    return [{'value': value, 'label': label} for value, label in choices]
