"""Pipeline filters that pass, select or fingerprint events."""