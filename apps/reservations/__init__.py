"""Reservations app package.

The consistency core of the rental platform: users open rental requests,
administrators approve or decline them, and an approval turns the request's
dates into a booking period. Committed booking periods of one vehicle never
overlap, enforced by a vehicle row lock and, on PostgreSQL, by an exclusion
constraint.
"""
