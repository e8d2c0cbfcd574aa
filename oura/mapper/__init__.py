"""Event writing and mapping of transaction metadata into events."""