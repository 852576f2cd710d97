"""Example usage of the typed_config library."""

from pathlib import Path

from typed_config import Schema, UnknownKeyError

# Define the record types using the DSL
types = """
define port as uint16

Endpoint {
    host: string = "localhost",
    port = 8080,
}

Service extends Endpoint {
    name: string,
    retries: optional<uint8>,
    weights: map<string, float64>,
    backends: Endpoint[],
}
"""

schema = Schema.parse(types)

# A default-initialized record writes every non-optional field
service = schema.create("Service", name="api")
print("Defaults:")
print(service.to_string())

# Read a config document over the defaults
service.read_string(
    """
    # upstreams, tried in order
    backends = [
        { host = one.internal },
        { host = two.internal
          port = 8081 },
    ]
    weights = [one, 0.75, two, 0.25]
    retries = 3
    """
)

# Dotted keys reach into nested records
service.set("port", "443")
print("After reading:")
print(service.to_string())

# Write to a file and read it back into a fresh record
path = Path("./example_service.cfg")
service.write_to_file(path)
copy = schema.create("Service")
copy.read_file(path)
print(f"Round trip equal: {copy == service}")

# Unknown keys are rejected, keys before them stay applied
try:
    copy.read_string("port=1\nbogus=2\n")
except UnknownKeyError as e:
    print(f"Error: {e}")
print(f"port after failed read: {copy.port}")

path.unlink()
