import logging
from utils.file_io import read_lines, read_pairs


def prepend_chosen_username(user, cred_array):
    return [(user, password) for _, password in cred_array] + cred_array


def prepend_chosen_password(password, cred_array):
    return [(user, password) for user, _ in cred_array] + cred_array


def gen_user_as_password(user_array, cred_array):
    """Try each username as its own password, ahead of the existing pairs."""
    user_as_passwords = [(user, user) for user in user_array]
    user_as_passwords.extend((user, user) for user, _ in cred_array)
    return user_as_passwords + cred_array


def gen_blank_passwords(user_array, cred_array):
    """Try an empty password for every username, ahead of the existing pairs."""
    blank_passwords = [(user, "") for user in user_array]
    blank_passwords.extend((user, "") for user, _ in cred_array)
    return blank_passwords + cred_array


def combine_users_and_passwords(user_array, pass_array, username=None, password=None):
    """
    Cross every username with every password (password varies fastest), then
    move the chosen username/password combinations to the front.

    Buckets, in order: the exact (username, password) pair, pairs using the
    chosen password, pairs using the chosen username, everything else.
    """
    if not user_array and not pass_array:
        return []

    if not pass_array:
        combined = [(user, "") for user in user_array]
    elif not user_array:
        combined = [("", pw) for pw in pass_array]
    else:
        combined = [(user, pw) for user in user_array for pw in pass_array]

    userpass, chosen_pass, chosen_user, rest = [], [], [], []
    for pair in combined:
        if pair == (username, password):
            userpass.append(pair)
        elif pair[1] == password:
            chosen_pass.append(pair)
        elif pair[0] == username:
            chosen_user.append(pair)
        else:
            rest.append(pair)
    return userpass + chosen_pass + chosen_user + rest


def just_uniq_passwords(credentials):
    return list(dict.fromkeys(("", password) for _, password in credentials))


def load_user_vars(options, username, credentials):
    users = read_lines(options.user_file).words
    if username is not None:
        users.insert(0, username)
        credentials = prepend_chosen_username(username, credentials)
    return users, credentials


def load_password_vars(options, password, credentials):
    passwords = read_lines(options.pass_file).words
    if password is not None:
        passwords.insert(0, password)
        credentials = prepend_chosen_password(password, credentials)
    return passwords, credentials


def build_credentials(options):
    """
    Merge the user/pass file, the user and password lists and the chosen
    USERNAME/PASSWORD into one ordered list of unique (user, password) pairs.

    Unreadable files count as empty sources, so this never raises on I/O.
    """
    credentials = read_pairs(options.userpass_file).words
    username, password = options.effective_credentials()

    users, credentials = load_user_vars(options, username, credentials)
    passwords, credentials = load_password_vars(options, password, credentials)

    if options.user_as_pass:
        credentials = gen_user_as_password(users, credentials)

    if options.blank_passwords:
        credentials = gen_blank_passwords(users, credentials)

    credentials = credentials + combine_users_and_passwords(users, passwords, username, password)
    credentials = list(dict.fromkeys(credentials))

    if options.strip_usernames:
        credentials = just_uniq_passwords(credentials)

    logging.debug(
        f"Built {len(credentials)} credentials from {len(users)} users and {len(passwords)} passwords"
    )
    return credentials
